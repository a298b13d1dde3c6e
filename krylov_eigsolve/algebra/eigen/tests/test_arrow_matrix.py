"""
Tests of the arrow/tridiagonal coefficient storage of the restarted Lanczos method.
"""

import numpy as np
import pytest

from krylov_eigsolve.algebra.eigen import ArrowMatrix

# ----------------------------------
#! Helpers
# ----------------------------------

def filled_arrow(capacity=6):
    arrow               = ArrowMatrix(capacity)
    arrow.alpha[:]      = np.arange(1.0, capacity + 1.0)
    arrow.beta[:]       = 0.1 * np.arange(1.0, capacity + 1.0)
    arrow.size          = capacity
    return arrow

# ----------------------------------
#! Structure
# ----------------------------------

class TestArrowStructure:

    def test_tridiagonal(self):
        arrow   = filled_arrow()
        A       = arrow.dense(0, 0, 4)
        expected = np.diag([1.0, 2.0, 3.0, 4.0]) + np.diag([0.1, 0.2, 0.3], 1) + np.diag([0.1, 0.2, 0.3], -1)
        assert np.allclose(A, expected)

    def test_arrow_block(self):
        arrow   = filled_arrow()
        A       = arrow.dense(0, 2, 5)
        expected = np.diag([1.0, 2.0, 3.0, 4.0, 5.0])
        # couplings of the two kept Ritz values with the restart vector
        expected[0, 2] = expected[2, 0] = 0.1
        expected[1, 2] = expected[2, 1] = 0.2
        # tridiagonal tail
        expected[2, 3] = expected[3, 2] = 0.3
        expected[3, 4] = expected[4, 3] = 0.4
        assert np.allclose(A, expected)
        assert expected[0, 1] == 0.0

    def test_locked_entries_excluded(self):
        arrow   = filled_arrow()
        A       = arrow.dense(1, 2, 5)
        assert A.shape == (4, 4)
        assert np.allclose(np.diag(A), [2.0, 3.0, 4.0, 5.0])
        assert A[0, 2] == pytest.approx(0.2)
        assert A[1, 2] == pytest.approx(0.3)
        assert A[2, 3] == pytest.approx(0.4)

    def test_invalid_blocks(self):
        arrow = filled_arrow(4)
        with pytest.raises(ValueError):
            arrow.dense(0, 0, 5)
        with pytest.raises(ValueError):
            arrow.dense(3, 0, 3)
        with pytest.raises(ValueError):
            arrow.dense(1, 3, 4)
        with pytest.raises(ValueError):
            ArrowMatrix(0)

    def test_reset(self):
        arrow = filled_arrow()
        arrow.reset()
        assert arrow.size == 0
        assert not np.any(arrow.alpha) and not np.any(arrow.beta)

# ----------------------------------
#! Eigen-decomposition
# ----------------------------------

class TestArrowEigensolve:

    @pytest.mark.parametrize("num_locked, arrow_pos, size", [(0, 0, 6), (0, 1, 6), (0, 3, 6), (2, 2, 6), (1, 3, 5)])
    def test_matches_dense(self, num_locked, arrow_pos, size):
        arrow       = filled_arrow()
        A           = arrow.dense(num_locked, arrow_pos, size)
        theta, Y    = arrow.eigensolve(num_locked, arrow_pos, size)

        assert np.allclose(theta, np.linalg.eigvalsh(A))
        assert np.all(np.diff(theta) >= 0.0)
        assert np.allclose(A @ Y, Y * theta[None, :])
        assert np.allclose(Y.T @ Y, np.eye(size - num_locked))

    def test_single_entry(self):
        arrow       = filled_arrow()
        theta, Y    = arrow.eigensolve(3, 0, 4)
        assert np.allclose(theta, [4.0])
        assert Y.shape == (1, 1) and Y[0, 0] == 1.0

    def test_residual_estimates(self):
        arrow           = filled_arrow()
        arrow.beta[4]   = 0.5
        theta, Y        = arrow.eigensolve(0, 0, 5)
        res             = arrow.residuals(Y, 5)
        assert np.allclose(res, 0.5 * np.abs(Y[-1, :]))

        # the estimate equals the true residual of the Lanczos relation A V = V T + beta r e^T
        n       = 5
        T       = arrow.dense(0, 0, n)
        full    = np.zeros((n + 1, n + 1))
        full[:n, :n]    = T
        full[n, n - 1]  = full[n - 1, n] = 0.5
        lifted  = np.vstack([Y, np.zeros((1, n))])
        true    = np.linalg.norm(full @ lifted - lifted * theta[None, :], axis=0)
        assert np.allclose(res, true)

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
