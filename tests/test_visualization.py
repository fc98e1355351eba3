"""Smoke tests for the E-M diagnostic plots."""

import warnings

import numpy as np
import pytest
import matplotlib
matplotlib.use('Agg')

import ancompython as ap


class TestVisualizationSmoke:
    """plot_em_trace and plot_em_mixture."""

    @pytest.fixture
    def traced_fit(self, mixture_data):
        Delta, nu0 = mixture_data
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            fit = ap.em_iter(Delta, nu0, 0.75, 0.125, 0.125, 0.4, -1.0, 1.0,
                             0.5, 0.5, max_iter=20, trace=True)
        return Delta, nu0, fit

    def test_plot_em_trace(self, traced_fit):
        import matplotlib.pyplot as plt
        _, _, fit = traced_fit
        fig, axes = ap.plot_em_trace(fit, main='EM trace')
        assert len(axes) == 2
        assert len(axes[0].get_lines()) == len(ap.PARAM_NAMES)
        plt.close(fig)

    def test_plot_em_trace_subset(self, traced_fit):
        import matplotlib.pyplot as plt
        _, _, fit = traced_fit
        fig, axes = ap.plot_em_trace(fit, params=['delta', 'l1', 'l2'])
        assert len(axes[0].get_lines()) == 3
        plt.close(fig)

    def test_plot_em_trace_requires_trace(self, scenario):
        Delta, nu0, init = scenario
        fit = ap.em_iter(Delta, nu0, **init, max_iter=0)
        with pytest.raises(ValueError, match="trace"):
            ap.plot_em_trace(fit)

    def test_plot_em_trace_unknown_param(self, traced_fit):
        _, _, fit = traced_fit
        with pytest.raises(ValueError):
            ap.plot_em_trace(fit, params=['sigma'])

    def test_plot_em_mixture(self, traced_fit):
        import matplotlib.pyplot as plt
        Delta, nu0, fit = traced_fit
        fig, ax = ap.plot_em_mixture(Delta, nu0, fit.params, main='Mixture')
        assert ax.get_title() == 'Mixture'
        assert len(ax.get_lines()) == 3
        plt.close(fig)
