"""
ancomPython: Python port of the ANCOM-BC bias estimator.

E-M estimation of the between-sample bias term from per-taxon log-ratio
differences and their variances.
"""

__version__ = "0.1.0"

# --- Classes ---
from .classes import EMParams, EMFit, PARAM_NAMES

# --- E-M estimator ---
from .em import (
    em_iter,
    em_step,
    e_step,
    m_step,
    em_distance,
    kappa_objective,
    update_kappa,
)

# --- Bias estimation ---
from .bias import bias_est_em, em_initial_values

# --- Optimization ---
from .optim import minimize_nonneg

# --- Visualization ---
from .visualization import plot_em_trace, plot_em_mixture
