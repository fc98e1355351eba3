"""
Between-sample bias estimation for ancomPython.

Port of the E-M part of ANCOM-BC's bias_est: data-driven starting values
and one em_iter run per covariate of the log-linear model.
"""

import numpy as np
import pandas as pd
import warnings

from .classes import EMParams, PARAM_NAMES
from .em import em_iter
from .utils import as_vector


def _tail_var(x):
    if len(x) < 2:
        return np.nan
    return float(np.var(x, ddof=1))


def em_initial_values(Delta):
    """Starting values for em_iter derived from the quantiles of Delta.

    The middle half of Delta seeds the bias, the lower and upper 12.5%
    tails seed the shifts and the variance inflations.

    Returns
    -------
    EMParams
    """
    Delta = as_vector(Delta, 'Delta')
    Delta = Delta[~np.isnan(Delta)]
    if len(Delta) == 0:
        raise ValueError("Delta has no defined values")

    q25, q75, q125, q875 = np.quantile(Delta, [0.25, 0.75, 0.125, 0.875])

    mid = Delta[(Delta >= q25) & (Delta <= q75)]
    delta_0 = float(np.mean(mid)) if len(mid) > 0 else float(np.mean(Delta))

    lower = Delta[Delta < q125]
    l1_0 = float(np.mean(lower)) if len(lower) > 0 else np.nan
    if np.isnan(l1_0) or l1_0 > 0:
        l1_0 = float(np.min(Delta))

    upper = Delta[Delta > q875]
    l2_0 = float(np.mean(upper)) if len(upper) > 0 else np.nan
    if np.isnan(l2_0) or l2_0 < 0:
        l2_0 = float(np.max(Delta))

    kappa1_0 = _tail_var(lower)
    if np.isnan(kappa1_0) or kappa1_0 == 0:
        kappa1_0 = 1.0
    kappa2_0 = _tail_var(upper)
    if np.isnan(kappa2_0) or kappa2_0 == 0:
        kappa2_0 = 1.0

    return EMParams(0.75, 0.125, 0.125, delta_0, l1_0, l2_0, kappa1_0, kappa2_0)


def _as_frame(x, name):
    if isinstance(x, pd.DataFrame):
        return x
    x = np.asarray(x, dtype=np.float64)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    if x.ndim != 2:
        raise ValueError(f"{name} must be a matrix (taxa x covariates)")
    return pd.DataFrame(x)


def bias_est_em(beta, var_hat, tol=1e-5, max_iter=100, skip_intercept=True,
                verbose=False):
    """Estimate the bias term of every covariate with the E-M algorithm.

    Parameters
    ----------
    beta : ndarray or DataFrame
        Taxa x covariates matrix of estimated coefficients.
    var_hat : ndarray or DataFrame
        Variances of beta, same shape.
    tol : float
        EM convergence tolerance.
    max_iter : int
        Maximum number of EM iterations.
    skip_intercept : bool
        Ignore the first column (the intercept).
    verbose : bool
        Print per-covariate progress.

    Returns
    -------
    dict with keys:
        'delta_em' : Series of bias estimates indexed by covariate
        'params' : DataFrame of the fitted mixture parameters
        'n_iter' : Series of EM iteration counts
        'converged' : Series of convergence flags
        'fits' : dict of EMFit objects by covariate
    """
    beta = _as_frame(beta, 'beta')
    var_hat = _as_frame(var_hat, 'var_hat')
    if beta.shape != var_hat.shape:
        raise ValueError(f"beta and var_hat must have the same shape "
                         f"({beta.shape} != {var_hat.shape})")

    columns = list(beta.columns)
    if beta.columns.has_duplicates:
        dup = list(beta.columns[beta.columns.duplicated()])
        raise ValueError(f"Duplicate covariate names in beta: {dup}")
    if skip_intercept:
        columns = columns[1:]

    params = pd.DataFrame(np.nan, index=columns, columns=list(PARAM_NAMES))
    n_iter = pd.Series(0, index=columns, dtype=int)
    converged = pd.Series(False, index=columns, dtype=bool)
    fits = {}

    for j, cov in enumerate(columns):
        pos = j + 1 if skip_intercept else j
        Delta = beta.iloc[:, pos].to_numpy(dtype=np.float64)
        nu0 = var_hat.iloc[:, pos].to_numpy(dtype=np.float64)
        ok = np.isfinite(Delta) & np.isfinite(nu0)
        Delta, nu0 = Delta[ok], nu0[ok]

        if len(Delta) == 0:
            warnings.warn(f"No usable taxa for covariate {cov!r}: bias is undefined")
            continue

        init = em_initial_values(Delta)
        if verbose:
            print(f"Covariate {cov!r}: {len(Delta)} taxa, initial delta = {init['delta']:.5f}")
        fit = em_iter(Delta, nu0, *init.to_array(), tol=tol, max_iter=max_iter)
        fits[cov] = fit
        params.loc[cov] = fit['params'].to_array()
        n_iter[cov] = fit['n_iter']
        converged[cov] = fit['converged']

    return {
        'delta_em': params['delta'].rename('delta_em'),
        'params': params,
        'n_iter': n_iter,
        'converged': converged,
        'fits': fits,
    }
