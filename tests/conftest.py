"""Shared fixtures for ancomPython tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator for reproducibility."""
    return np.random.RandomState(42)


@pytest.fixture
def mixture_data(rng):
    """200 taxa: 160 null around 0.5, 20 negative and 20 positive outliers."""
    n_null, n_out = 160, 20
    Delta = np.concatenate([
        0.5 + rng.normal(0, 0.1, n_null),
        0.5 - 2 + rng.normal(0, 0.3, n_out),
        0.5 + 2 + rng.normal(0, 0.3, n_out),
    ])
    nu0 = np.full(len(Delta), 0.01)
    return Delta, nu0


@pytest.fixture
def scenario():
    """Four taxa split symmetrically around zero."""
    Delta = np.array([0.5, 0.5, -0.5, -0.5])
    nu0 = np.ones(4)
    init = dict(pi0_0=0.8, pi1_0=0.1, pi2_0=0.1, delta_0=0.0,
                l1_0=-0.2, l2_0=0.2, kappa1_0=0.1, kappa2_0=0.1)
    return Delta, nu0, init
