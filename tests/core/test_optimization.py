"""
Tests for the bounded optimisation backends.

Validates:
    - Both scipy backends satisfy the BoxConstrainedOptimizer protocol
    - Interior and boundary maxima are found
    - Non-convergence is reported through diagnostics, not raised
    - Non-finite objectives raise NumericalError
    - get_optimizer name resolution
"""

import numpy as np
import pytest

from mixedml.core.compute.optimization import (
    LBFGSBOptimizer,
    OptimizationResult,
    PowellOptimizer,
    get_optimizer,
)
from mixedml.core.compute.optimization.scipy_backends import projected_gradient_norm
from mixedml.core.exceptions import NumericalError, ValidationError
from mixedml.core.protocols import BoxConstrainedOptimizer


def concave_quadratic(x):
    return -((x[0] - 1.0) ** 2 + (x[1] + 2.0) ** 2)


def concave_quadratic_grad(x):
    return np.array([-2.0 * (x[0] - 1.0), -2.0 * (x[1] + 2.0)])


def neg_rosenbrock(x):
    return -(100.0 * (x[1] - x[0] ** 2) ** 2 + (1.0 - x[0]) ** 2)


LOWER = np.array([0.0, 0.0])
UPPER = np.array([5.0, 5.0])
X0 = np.array([3.0, 3.0])


# ═══════════════════════════════════════════════════════════════════════
# Protocol conformance
# ═══════════════════════════════════════════════════════════════════════


class TestProtocol:

    @pytest.mark.parametrize("cls", [LBFGSBOptimizer, PowellOptimizer])
    def test_is_box_constrained_optimizer(self, cls):
        assert isinstance(cls(), BoxConstrainedOptimizer)

    def test_names(self):
        assert LBFGSBOptimizer().name == 'cpu_lbfgsb'
        assert PowellOptimizer().name == 'cpu_powell'


# ═══════════════════════════════════════════════════════════════════════
# L-BFGS-B
# ═══════════════════════════════════════════════════════════════════════


class TestLBFGSB:

    def test_boundary_maximum(self):
        """Maximum at (1, 0): second coordinate pinned to its lower bound."""
        res = LBFGSBOptimizer().maximize(
            concave_quadratic, LOWER, UPPER, X0, gradient=concave_quadratic_grad,
        )
        assert isinstance(res, OptimizationResult)
        assert res.diagnostics.converged
        assert res.diagnostics.reason == 'converged'
        np.testing.assert_allclose(res.argmax, [1.0, 0.0], atol=1e-8)
        assert res.value == pytest.approx(-4.0, abs=1e-10)
        assert res.diagnostics.gradient_norm < 1e-6

    def test_without_gradient(self):
        res = LBFGSBOptimizer().maximize(concave_quadratic, LOWER, UPPER, X0)
        np.testing.assert_allclose(res.argmax, [1.0, 0.0], atol=1e-5)

    def test_max_iter_reported_not_raised(self):
        res = LBFGSBOptimizer().maximize(
            neg_rosenbrock,
            np.array([-5.0, -5.0]), np.array([5.0, 5.0]),
            np.array([-1.2, 1.0]),
            max_iter=1,
        )
        assert not res.diagnostics.converged
        assert res.diagnostics.reason == 'max_iterations'
        assert res.diagnostics.n_iter == 1

    def test_nan_objective_raises(self):
        with pytest.raises(NumericalError, match="not finite"):
            LBFGSBOptimizer().maximize(
                lambda x: float('nan'), LOWER, UPPER, X0,
            )


# ═══════════════════════════════════════════════════════════════════════
# Powell
# ═══════════════════════════════════════════════════════════════════════


class TestPowell:

    def test_boundary_maximum(self):
        res = PowellOptimizer().maximize(concave_quadratic, LOWER, UPPER, X0)
        assert res.diagnostics.converged
        assert res.diagnostics.gradient_norm is None
        np.testing.assert_allclose(res.argmax, [1.0, 0.0], atol=1e-5)

    def test_gradient_ignored(self):
        def broken_gradient(x):
            raise AssertionError("derivative-free backend called the gradient")

        res = PowellOptimizer().maximize(
            concave_quadratic, LOWER, UPPER, X0, gradient=broken_gradient,
        )
        assert res.diagnostics.converged

    def test_max_iter_reported_not_raised(self):
        res = PowellOptimizer().maximize(
            neg_rosenbrock,
            np.array([-5.0, -5.0]), np.array([5.0, 5.0]),
            np.array([-1.2, 1.0]),
            max_iter=1,
        )
        assert not res.diagnostics.converged
        assert res.diagnostics.reason == 'max_iterations'


# ═══════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════


class TestProjectedGradient:

    def test_active_bound_zeroed(self):
        # Minimisation gradient pushes x[1] below its lower bound
        x = np.array([1.0, 0.0])
        grad = np.array([0.0, 4.0])
        assert projected_gradient_norm(x, grad, LOWER, UPPER) == 0.0

    def test_interior_kept(self):
        x = np.array([1.0, 1.0])
        grad = np.array([0.5, -3.0])
        assert projected_gradient_norm(x, grad, LOWER, UPPER) == 3.0


class TestGetOptimizer:

    def test_by_name(self):
        assert isinstance(get_optimizer('L-BFGS-B'), LBFGSBOptimizer)
        assert isinstance(get_optimizer('Powell'), PowellOptimizer)

    def test_instance_passthrough(self):
        opt = PowellOptimizer()
        assert get_optimizer(opt) is opt

    def test_unknown_name(self):
        with pytest.raises(ValidationError, match="Unknown optimizer"):
            get_optimizer('Nelder-Mead')

    def test_wrong_type(self):
        with pytest.raises(ValidationError, match="expected a method name"):
            get_optimizer(42)
