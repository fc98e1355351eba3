"""
E-M estimation of the between-sample bias for ancomPython.

Port of ANCOM-BC's em_iter: a three-component Gaussian mixture separating
taxa with no real bias (mean delta) from two asymmetric classes of outlier
bias (means delta + l1 and delta + l2, with inflated variances).
"""

import numpy as np
import pandas as pd
import warnings

from .classes import EMParams, EMFit, PARAM_NAMES
from .optim import minimize_nonneg
from .utils import check_observations, dnorm, sum_defined, mean_defined, ratio_defined


def e_step(Delta, nu0, params):
    """Posterior probability of each taxon belonging to each component.

    Parameters
    ----------
    Delta : array-like
        Observed log-ratio differences, one per taxon.
    nu0 : array-like
        Known variances of Delta.
    params : EMParams
        Current parameter estimate.

    Returns
    -------
    ndarray of shape (n_taxa, 3). Each row sums to 1, or is all zero when
    the weighted densities of that taxon vanish (or are undefined).
    """
    Delta, nu0 = check_observations(Delta, nu0)
    p = params
    with np.errstate(divide='ignore', invalid='ignore', under='ignore'):
        dens = np.column_stack([
            p['pi0'] * dnorm(Delta, p['delta'], nu0),
            p['pi1'] * dnorm(Delta, p['delta'] + p['l1'], nu0 + p['kappa1']),
            p['pi2'] * dnorm(Delta, p['delta'] + p['l2'], nu0 + p['kappa2']),
        ])
        total = dens.sum(axis=1)
        ok = np.isfinite(total) & (total > 0) & np.all(np.isfinite(dens), axis=1)
        resp = np.zeros_like(dens)
        resp[ok] = dens[ok] / total[ok, None]
    return resp


def kappa_objective(x, Delta, nu0, mean, r):
    """Weighted negative log-likelihood of the inflated variance x.

    Log-densities that are not finite (pdf underflow) contribute 0, and
    undefined weighted terms are skipped.
    """
    with np.errstate(divide='ignore', invalid='ignore', under='ignore'):
        log_pdf = np.atleast_1d(np.log(dnorm(Delta, mean, nu0 + x)))
        log_pdf[np.isinf(log_pdf)] = 0
        return -sum_defined(r * log_pdf)


def update_kappa(Delta, nu0, mean, r, kappa, **kwargs):
    """Variance inflation maximizing the r-weighted likelihood, started at kappa.

    A component with no responsibility carries no information and keeps
    its current kappa (floored at 0). Extra keyword arguments go to
    minimize_nonneg.
    """
    Delta, nu0 = check_observations(Delta, nu0)
    r = np.asarray(r, dtype=np.float64)
    if sum_defined(r) == 0:
        return max(float(kappa), 0.0)
    return minimize_nonneg(
        lambda x: kappa_objective(x, Delta, nu0, mean, r), kappa, **kwargs)


def m_step(Delta, nu0, params, resp):
    """Next parameter estimate from the responsibilities.

    Mixture weights, bias and shifts have closed forms; the two variance
    inflations are found numerically. l1 is clamped to <= 0 and l2 to >= 0.
    """
    Delta, nu0 = check_observations(Delta, nu0)
    resp = np.asarray(resp, dtype=np.float64)
    if resp.shape != (len(Delta), 3):
        raise ValueError(f"resp must have shape ({len(Delta)}, 3), got {resp.shape}")
    p = params
    r0, r1, r2 = resp[:, 0], resp[:, 1], resp[:, 2]
    delta, l1, l2 = p['delta'], p['l1'], p['l2']
    kappa1, kappa2 = p['kappa1'], p['kappa2']

    pis = [mean_defined(resp[:, k]) for k in range(3)]
    if np.any(np.isnan(pis)):
        warnings.warn("No defined responsibilities: mixture weights are undefined")

    with np.errstate(divide='ignore', invalid='ignore'):
        w0 = r0 / nu0
        w1 = r1 / (nu0 + kappa1)
        w2 = r2 / (nu0 + kappa2)

        delta_new = ratio_defined(w0 * Delta + w1 * (Delta - l1) + w2 * (Delta - l2),
                                  w0 + w1 + w2)
        if np.isnan(delta_new):
            warnings.warn("Zero total precision weight: bias term is undefined")

        # Empty components keep their shift, still projected onto its sign
        l1_new = ratio_defined(w1 * (Delta - delta), w1)
        l1_new = min(l1 if np.isnan(l1_new) else l1_new, 0.0)
        l2_new = ratio_defined(w2 * (Delta - delta), w2)
        l2_new = max(l2 if np.isnan(l2_new) else l2_new, 0.0)

    kappa1_new = update_kappa(Delta, nu0, delta + l1, r1, kappa1)
    kappa2_new = update_kappa(Delta, nu0, delta + l2, r2, kappa2)

    return EMParams(pis[0], pis[1], pis[2], delta_new,
                    l1_new, l2_new, kappa1_new, kappa2_new)


def em_step(Delta, nu0, params):
    """One E-step followed by one M-step. Returns (new_params, resp)."""
    resp = e_step(Delta, nu0, params)
    return m_step(Delta, nu0, params, resp), resp


def em_distance(a, b):
    """Euclidean norm of the change between two parameter vectors."""
    return float(np.sqrt(np.sum((a.to_array() - b.to_array()) ** 2)))


def em_iter(Delta, nu0, pi0_0, pi1_0, pi2_0, delta_0, l1_0, l2_0,
            kappa1_0, kappa2_0, tol=1e-5, max_iter=100, trace=False,
            verbose=False):
    """Estimate the bias mixture by Expectation-Maximization.

    Port of ANCOM-BC's em_iter.

    Parameters
    ----------
    Delta : array-like
        Observed log-ratio differences, one per taxon.
    nu0 : array-like
        Known (positive) variances of Delta, same length.
    pi0_0, pi1_0, pi2_0 : float
        Initial mixture weights.
    delta_0 : float
        Initial bias.
    l1_0, l2_0 : float
        Initial shifts (l1_0 <= 0 <= l2_0).
    kappa1_0, kappa2_0 : float
        Initial variance inflations (>= 0).
    tol : float
        Convergence tolerance on the Euclidean norm of the parameter change.
    max_iter : int
        Maximum number of iterations.
    trace : bool
        Record every iterate in a DataFrame (fit['trace']).
    verbose : bool
        Print progress per iteration.

    Returns
    -------
    EMFit with 'params', 'n_iter', 'epsilon', 'converged' and 'trace'.
    If no iteration runs (max_iter <= 0) the initial parameters are
    returned unchanged.
    """
    Delta, nu0 = check_observations(Delta, nu0)

    current = EMParams(pi0_0, pi1_0, pi2_0, delta_0, l1_0, l2_0,
                       kappa1_0, kappa2_0)
    rows = [[0] + list(current.to_array()) + [np.nan]] if trace else None

    n_iter = 0
    epsilon = np.inf
    while epsilon > tol and n_iter < max_iter:
        previous = current
        current, _ = em_step(Delta, nu0, previous)
        epsilon = em_distance(current, previous)
        n_iter += 1

        if trace:
            rows.append([n_iter] + list(current.to_array()) + [epsilon])
        if verbose:
            print(f"EM iteration {n_iter}: epsilon = {epsilon:.6g}, "
                  f"delta = {current['delta']:.6g}")
        if not current.is_finite():
            warnings.warn("EM iteration produced undefined parameters; stopping")
            break

    if n_iter == 0:
        epsilon = np.nan
    converged = bool(epsilon <= tol)
    if n_iter > 0 and not converged and not np.isnan(epsilon):
        warnings.warn(f"EM algorithm did not converge in {max_iter} iterations "
                      f"(epsilon = {epsilon:.3g})")

    trace_df = None
    if trace:
        trace_df = pd.DataFrame(rows, columns=['iteration', *PARAM_NAMES, 'epsilon'])
        trace_df['iteration'] = trace_df['iteration'].astype(int)

    return EMFit(params=current, n_iter=n_iter, epsilon=epsilon,
                 converged=converged, trace=trace_df)
