"""
Tests for variance components on or near the boundary of the box.

Validates:
    - Zero within-group variance drives σ² to its floor, still converged
    - Zero between-group variance reduces the fit to OLS
    - Singleton groups are reported as degenerate, with only σ² + σs²
      identified
    - The floor is configurable
"""

import numpy as np
import pytest

from mixedml.core.exceptions import NotPositiveDefiniteError, NumericalFailure
from mixedml.mixed import VARIANCE_FLOOR, FitStatus, fit, ols_log_likelihood


class TestZeroWithinGroupVariance:
    """y is constant within each group."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.y = np.array([5.0, 5.0, 9.0, 9.0])
        self.X = np.ones((4, 1))
        self.groups = ['a', 'a', 'b', 'b']
        self.result = fit(self.y, self.X, self.groups)

    def test_converged(self):
        assert self.result.converged
        assert self.result.status == FitStatus.CONVERGED

    def test_residual_variance_at_floor(self):
        assert self.result.sigma_sq == pytest.approx(VARIANCE_FLOOR, rel=1e-3)
        assert self.result.at_boundary['residual']
        assert not self.result.at_boundary['group']

    def test_boundary_reported(self):
        assert self.result.params.at_boundary == {'residual': True, 'group': False}
        assert any('residual variance is at its lower bound' in w
                   for w in self.result.warnings)
        assert 'NOTE: variance at lower bound: residual' in self.result.summary()

    def test_group_variance(self):
        # Per group: σ² + 2σs² = (Σ r)² / 2 = 8, so σs² = 4 − σ²/2
        assert self.result.sigma_s_sq == pytest.approx(4.0, rel=1e-4)
        assert self.result.coefficients[0] == pytest.approx(7.0, rel=1e-4)

    def test_custom_floor(self):
        result = fit(self.y, self.X, self.groups, variance_floor=1e-4)
        assert result.sigma_sq == pytest.approx(1e-4, rel=1e-3)
        assert result.config.variance_floor == 1e-4


class TestZeroBetweenGroupVariance:
    """Group means are equal, so the ML random-intercept variance is zero."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.y = np.array([1.0, 3.0, 3.0, 1.0])
        self.X = np.ones((4, 1))
        self.groups = ['a', 'a', 'b', 'b']
        self.result = fit(self.y, self.X, self.groups)

    def test_group_variance_at_floor(self):
        assert self.result.converged
        assert self.result.at_boundary['group']
        assert self.result.sigma_s_sq == pytest.approx(VARIANCE_FLOOR, rel=1e-3)

    def test_reduces_to_ols(self):
        assert self.result.coefficients[0] == pytest.approx(2.0, rel=1e-4)
        assert self.result.sigma_sq == pytest.approx(1.0, rel=1e-4)
        assert self.result.log_likelihood == pytest.approx(
            ols_log_likelihood(self.y, self.X), abs=1e-4
        )

    def test_ranef_shrunk_to_zero(self):
        for u in self.result.ranef.values():
            assert abs(u) < 1e-5


class TestSingletonGroups:
    """m = n: K Kᵗ = I, so σ² and σs² are confounded."""

    def test_degenerate_status_and_warning(self, toy):
        with pytest.warns(UserWarning, match="not identifiable"):
            result = fit(toy['y'], toy['X'], ['a', 'b', 'c', 'd'])
        assert result.status == FitStatus.DEGENERATE
        assert result.params.n_groups == 4
        assert any('only sigma^2 + sigma_s^2 is identifiable' in w
                   for w in result.warnings)

    def test_total_variance_identified(self, toy):
        with pytest.warns(UserWarning):
            result = fit(toy['y'], toy['X'], ['a', 'b', 'c', 'd'])
        # Σy = (σ² + σs²) I, so the total is the OLS ML variance RSS / n
        assert result.sigma_sq + result.sigma_s_sq == pytest.approx(205.0 / 4, rel=1e-4)
        np.testing.assert_allclose(result.coefficients, [6.5, 9.0], rtol=1e-4)
        assert result.log_likelihood == pytest.approx(
            ols_log_likelihood(toy['y'], toy['X']), rel=1e-8
        )

    def test_summary_flags_degenerate(self, toy):
        with pytest.warns(UserWarning):
            result = fit(toy['y'], toy['X'], ['a', 'b', 'c', 'd'])
        assert 'only the total variance is identifiable' in result.summary()
        assert 'status=degenerate' in repr(result)


class TestSingularStart:

    def test_zero_variances_at_start(self, toy):
        with pytest.raises(NotPositiveDefiniteError) as exc_info:
            fit(
                toy['y'], toy['X'], toy['individual'],
                lower_bounds=[0.0, 0.0, None, None],
                initial_guess=[0.0, 0.0, 6.5, 9.0],
            )
        assert isinstance(exc_info.value, NumericalFailure)
        assert exc_info.value.matrix_name == 'Sigma_y'

    def test_zero_floor_allowed(self, toy):
        """A zero floor is accepted; the default start is strictly positive."""
        result = fit(toy['y'], toy['X'], toy['individual'], variance_floor=0.0)
        assert result.config.lower_bounds[0] == 0.0
        assert result.sigma_sq == pytest.approx(18.0, rel=1e-4)


class TestFloorScale:
    """The floor is absolute, in the squared units of y."""

    SCALE = 1e-4

    def test_default_floor_pins_small_scale_data(self, toy):
        # σ² = 18e-8 and σs² = 33.25e-8, both below the 1e-6 floor
        result = fit(toy['y'] * self.SCALE, toy['X'], toy['individual'])
        assert result.at_boundary == {'residual': True, 'group': True}
        assert result.sigma == pytest.approx(np.sqrt(VARIANCE_FLOOR))

    def test_rescaled_floor_recovers_estimates(self, toy):
        result = fit(
            toy['y'] * self.SCALE, toy['X'], toy['individual'],
            variance_floor=VARIANCE_FLOOR * self.SCALE ** 2,
        )
        assert not any(result.at_boundary.values())
        assert result.sigma_sq == pytest.approx(18.0 * self.SCALE ** 2, rel=1e-3)
        assert result.sigma_s_sq == pytest.approx(33.25 * self.SCALE ** 2, rel=1e-3)
        np.testing.assert_allclose(
            result.coefficients, np.array([6.5, 9.0]) * self.SCALE, rtol=1e-3
        )
