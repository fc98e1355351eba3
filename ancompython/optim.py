"""
Bounded scalar minimization for ancomPython.

Stands in for nloptr's neldermead(x0, fn, lower = 0) used by ANCOM-BC to
update the variance-inflation parameters.
"""

import numpy as np
from scipy.optimize import minimize


def minimize_nonneg(fun, x0, xatol=1e-6, fatol=1e-8, maxiter=1000):
    """Minimize a scalar function over [0, inf) with the Nelder-Mead simplex.

    Parameters
    ----------
    fun : callable
        Objective taking a single float.
    x0 : float
        Starting value. Negative starts are projected onto 0.
    xatol, fatol : float
        Absolute tolerances on the simplex size and on the objective.
    maxiter : int
        Maximum number of simplex iterations.

    Returns
    -------
    float
        A local minimizer, never below 0. The search is deterministic
        for fixed inputs.
    """
    x0 = float(x0)
    if not np.isfinite(x0):
        raise ValueError(f"x0 must be finite, got {x0}")
    x0 = max(x0, 0.0)

    res = minimize(lambda x: fun(float(x[0])), np.array([x0]),
                   method='Nelder-Mead', bounds=[(0.0, None)],
                   options={'xatol': xatol, 'fatol': fatol, 'maxiter': maxiter})
    return max(float(res.x[0]), 0.0)
