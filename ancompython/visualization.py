"""
Visualization functions for ancomPython.

Diagnostic plots for the E-M bias estimator: parameter trajectories and the
fitted mixture over the observed log-ratio differences.
"""

import numpy as np

from .classes import PARAM_NAMES
from .em import e_step
from .utils import check_observations


def plot_em_trace(fit, params=None, main=None, **kwargs):
    """Plot parameter trajectories and the convergence criterion.

    Parameters
    ----------
    fit : EMFit
        Result of em_iter(..., trace=True).
    params : list of str, optional
        Parameters to draw. Defaults to all eight.
    main : str, optional
        Figure title.

    Returns
    -------
    (fig, axes) with the trajectories on axes[0] and epsilon on axes[1].
    """
    import matplotlib.pyplot as plt

    tr = fit.get('trace')
    if tr is None:
        raise ValueError("fit has no trace; rerun em_iter with trace=True")
    if params is None:
        params = list(PARAM_NAMES)
    unknown = [p for p in params if p not in PARAM_NAMES]
    if unknown:
        raise ValueError(f"Unknown parameters: {unknown}")

    fig, axes = plt.subplots(2, 1, figsize=(8, 7), sharex=True)
    for p in params:
        axes[0].plot(tr['iteration'], tr[p], marker='o', markersize=3, label=p)
    axes[0].set_ylabel('Estimate')
    axes[0].legend(ncol=4, fontsize='small')

    eps = tr['epsilon'].to_numpy(dtype=np.float64)
    it = tr['iteration'].to_numpy()
    ok = np.isfinite(eps) & (eps > 0)
    axes[1].semilogy(it[ok], eps[ok], marker='o', markersize=3, c='black')
    axes[1].set_xlabel('Iteration')
    axes[1].set_ylabel('Parameter change')
    if main:
        fig.suptitle(main)

    plt.tight_layout()
    return fig, axes


def plot_em_mixture(Delta, nu0, params, xlab='Taxon', ylab='Delta',
                    main=None, **kwargs):
    """Observed Delta colored by most probable mixture component.

    Horizontal lines mark delta, delta + l1 and delta + l2. Taxa whose
    responsibilities are all zero are drawn in grey.
    """
    import matplotlib.pyplot as plt

    Delta, nu0 = check_observations(Delta, nu0)
    resp = e_step(Delta, nu0, params)
    comp = np.argmax(resp, axis=1)
    comp[resp.sum(axis=1) == 0] = -1

    fig, ax = plt.subplots(figsize=(8, 6))
    x = np.arange(len(Delta))
    labels = {-1: ('undetermined', 'grey'), 0: ('null', 'black'),
              1: ('negative outlier', 'blue'), 2: ('positive outlier', 'red')}
    for k, (label, color) in labels.items():
        mask = comp == k
        if np.any(mask):
            ax.scatter(x[mask], Delta[mask], s=6, alpha=0.6, c=color, label=label)

    ax.axhline(y=params['delta'], color='black', linestyle='-', linewidth=0.8)
    ax.axhline(y=params['delta'] + params['l1'], color='blue', linestyle='--', linewidth=0.8)
    ax.axhline(y=params['delta'] + params['l2'], color='red', linestyle='--', linewidth=0.8)
    ax.set_xlabel(xlab)
    ax.set_ylabel(ylab)
    if main:
        ax.set_title(main)
    ax.legend()

    plt.tight_layout()
    return fig, ax
