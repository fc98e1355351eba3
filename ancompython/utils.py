"""
Numeric helpers for ancomPython.

Input coercion, the Gaussian density used by the EM estimator, and
sums/means that skip undefined (NaN) terms the way R's ``na.rm = TRUE``
does.
"""

import numpy as np
from scipy import stats


def as_vector(x, name='x'):
    """Coerce array-like input to a 1-D float64 array (copying it)."""
    if hasattr(x, 'values'):
        x = x.values
    x = np.array(x, dtype=np.float64)
    if x.ndim == 0:
        x = x.reshape(1)
    if x.ndim != 1:
        raise ValueError(f"{name} must be one-dimensional, got shape {x.shape}")
    return x


def check_observations(Delta, nu0):
    """Coerce and validate the observation and variance vectors."""
    Delta = as_vector(Delta, 'Delta')
    nu0 = as_vector(nu0, 'nu0')
    if len(Delta) != len(nu0):
        raise ValueError(
            f"Delta and nu0 must have the same length ({len(Delta)} != {len(nu0)})")
    return Delta, nu0


def dnorm(x, mean, var):
    """Normal density parameterised by variance, as in R's dnorm(x, mean, sqrt(var))."""
    return stats.norm.pdf(x, loc=mean, scale=np.sqrt(var))


def sum_defined(x):
    """Sum over the defined (non-NaN) entries; 0 when there are none."""
    x = np.asarray(x, dtype=np.float64)
    return float(np.sum(x[~np.isnan(x)]))


def mean_defined(x):
    """Mean over the defined entries; NaN when there are none."""
    x = np.asarray(x, dtype=np.float64)
    ok = ~np.isnan(x)
    if not np.any(ok):
        return np.nan
    return float(np.mean(x[ok]))


def ratio_defined(num, den):
    """sum_defined(num) / sum_defined(den), NaN for a zero or undefined denominator."""
    d = sum_defined(den)
    if d == 0 or not np.isfinite(d):
        return np.nan
    return sum_defined(num) / d
