"""
Core data classes for ancomPython.

The mixture parameter vector (EMParams) and the EM estimator result (EMFit),
as dicts with attribute access and a compact display.
"""

import numpy as np


PARAM_NAMES = ('pi0', 'pi1', 'pi2', 'delta', 'l1', 'l2', 'kappa1', 'kappa2')


class _AncomBase(dict):
    """Base class providing dict-like access and display."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

    def __setattr__(self, name, value):
        self[name] = value

    def __delattr__(self, name):
        try:
            del self[name]
        except KeyError:
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")

    def __repr__(self):
        cls = type(self).__name__
        return f"{cls}\nComponents: {', '.join(self.keys())}"


class EMParams(_AncomBase):
    """Parameters of the three-component Gaussian mixture.

    Keys, in canonical order: pi0, pi1, pi2 (mixture weights), delta
    (bias), l1 <= 0 and l2 >= 0 (shifts of the outlier components
    relative to delta), kappa1, kappa2 >= 0 (variance inflations).
    """

    def __init__(self, pi0=np.nan, pi1=np.nan, pi2=np.nan, delta=np.nan,
                 l1=np.nan, l2=np.nan, kappa1=np.nan, kappa2=np.nan):
        super().__init__(pi0=float(pi0), pi1=float(pi1), pi2=float(pi2),
                         delta=float(delta), l1=float(l1), l2=float(l2),
                         kappa1=float(kappa1), kappa2=float(kappa2))

    def to_array(self):
        """Parameters as an 8-vector in PARAM_NAMES order."""
        return np.array([self[k] for k in PARAM_NAMES], dtype=np.float64)

    @classmethod
    def from_array(cls, x):
        x = np.asarray(x, dtype=np.float64).ravel()
        if len(x) != len(PARAM_NAMES):
            raise ValueError(f"expected {len(PARAM_NAMES)} parameters, got {len(x)}")
        return cls(*x)

    def is_finite(self):
        return bool(np.all(np.isfinite(self.to_array())))

    def __repr__(self):
        body = ', '.join(f"{k}={self[k]:.6g}" for k in PARAM_NAMES)
        return f"EMParams({body})"


class EMFit(_AncomBase):
    """Result of em_iter.

    Components: params (EMParams), n_iter, epsilon (last parameter-change
    norm, NaN if no iteration ran), converged, trace (DataFrame or None).
    """

    def __repr__(self):
        status = 'converged' if self.get('converged') else 'not converged'
        return (f"EMFit ({status} after {self.get('n_iter')} iterations, "
                f"epsilon={self.get('epsilon'):.3g})\n{self.get('params')!r}")
