"""
Test suite for the thick-restart Lanczos eigensolver.

Compares with full diagonalization for all supported spectrum selectors,
checks the restart bookkeeping (locking, reorder, orthogonality of the kept
basis), Chebyshev acceleration, breakdown recovery, exhaustion, SVD mode,
checkpoints and the JAX backend.
"""

import numpy as np
import pytest

from krylov_eigsolve.algebra.eigen import (
    EigenParams,
    ThickRestartLanczos,
    ConfigurationError,
    ConvergenceExhaustion,
    ValidationError,
)
from krylov_eigsolve.algebra.operators import MatrixOperator, FunctionOperator
from krylov_eigsolve.algebra.vectors import VectorSpace
from krylov_eigsolve.algebra.utils import JAX_AVAILABLE

# ----------------------------------
#! Helper functions to create test matrices
# ----------------------------------

def create_spectrum_matrix(eigenvalues, seed=42, complex_valued=False):
    """Dense Hermitian matrix Q diag(eigenvalues) Q^dag with a random unitary Q."""
    rng = np.random.default_rng(seed)
    n   = len(eigenvalues)
    Z   = rng.standard_normal((n, n))
    if complex_valued:
        Z = Z + 1j * rng.standard_normal((n, n))
    Q, _    = np.linalg.qr(Z)
    A       = Q @ np.diag(eigenvalues) @ Q.conj().T
    return 0.5 * (A + A.conj().T)

def separated_spectrum(n=120):
    """Both ends separated from a dense bulk: [-5..-1] + [0, 10] + [11..15]."""
    return np.concatenate([np.arange(-5.0, 0.0), np.linspace(0.0, 10.0, n - 10), np.arange(11.0, 16.0)])

def true_residuals(A, result):
    V = result.eigenvectors
    return np.linalg.norm(A @ V - V * result.eigenvalues[None, :], axis=0)

# ----------------------------------
#! Spectrum selection
# ----------------------------------

class TestTRLMSpectrum:
    """Recovery of extremal eigenpairs."""

    def test_smallest_real(self):
        evals   = separated_spectrum()
        A       = create_spectrum_matrix(evals)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, tol=1e-10, spectrum='SR')
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert result.converged
        assert result.num_converged == 4
        assert np.allclose(result.eigenvalues, [-5.0, -4.0, -3.0, -2.0], atol=1e-8)
        assert np.all(true_residuals(A, result) < 1e-8)

    def test_largest_real(self):
        evals   = separated_spectrum()
        A       = create_spectrum_matrix(evals, seed=7)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='LR')
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert result.converged
        assert np.allclose(result.eigenvalues, [15.0, 14.0, 13.0, 12.0], atol=1e-8)

    def test_largest_magnitude(self):
        evals   = separated_spectrum()
        A       = create_spectrum_matrix(evals, seed=3)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=3, spectrum='LM')
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert result.converged
        assert np.allclose(result.eigenvalues, [15.0, 14.0, 13.0], atol=1e-8)

    def test_smallest_magnitude_positive_spectrum(self):
        evals   = np.concatenate([[0.5, 1.0, 1.5], np.linspace(5.0, 20.0, 77)])
        A       = create_spectrum_matrix(evals, seed=11)
        params  = EigenParams(n_ev=6, n_kr=20, n_conv=3, spectrum='SM')
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert result.converged
        assert np.allclose(result.eigenvalues, [0.5, 1.0, 1.5], atol=1e-8)

    def test_complex_hermitian(self):
        evals   = separated_spectrum(80)
        A       = create_spectrum_matrix(evals, seed=5, complex_valued=True)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR')
        solver  = ThickRestartLanczos(params, MatrixOperator(A))
        result  = solver.solve()

        assert solver.space.is_complex
        assert result.converged
        assert np.allclose(result.eigenvalues, [-5.0, -4.0, -3.0, -2.0], atol=1e-8)
        assert np.all(true_residuals(A, result) < 1e-8)

    def test_diagonal_sparse_operator(self):
        """Diagonal operator: eigenvalues come back exactly in ascending order."""
        import scipy.sparse as sp
        evals   = np.concatenate([[0.1, 0.2, 0.3, 0.4], np.linspace(2.0, 6.0, 196)])
        A       = sp.diags(evals).tocsr()
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR')
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert result.converged
        assert np.allclose(result.eigenvalues, [0.1, 0.2, 0.3, 0.4], atol=1e-9)
        assert np.all(np.diff(result.eigenvalues) > 0)

    def test_matrix_free_operator(self):
        evals   = separated_spectrum()
        A       = create_spectrum_matrix(evals, seed=13)
        op      = FunctionOperator(lambda x: A @ x, dim=A.shape[0], hermitian=True)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=2, spectrum='SR')
        result  = ThickRestartLanczos(params, op).solve()

        assert np.allclose(result.eigenvalues, [-5.0, -4.0], atol=1e-8)

# ----------------------------------
#! Restart bookkeeping
# ----------------------------------

class TestTRLMState:
    """Invariants of the restarted iteration."""

    def _solve(self, **kwargs):
        A       = create_spectrum_matrix(separated_spectrum(), seed=21)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR', **kwargs)
        solver  = ThickRestartLanczos(params, MatrixOperator(A))
        return A, solver, solver.solve()

    def test_counters_consistent(self):
        _, solver, result = self._solve()
        st = solver.state
        assert 0 <= st.num_locked <= st.num_keep <= solver.params.n_kr
        assert result.iterations == st.iter
        assert result.restarts == st.restart_iter >= 1
        assert solver.pool.outstanding == 0

    def test_kept_basis_orthonormal(self):
        _, solver, result = self._solve()
        S = result.subspacevectors
        assert S.shape[1] == solver.state.num_keep
        assert np.allclose(S.conj().T @ S, np.eye(S.shape[1]), atol=1e-10)

    def test_basis_orthonormal_at_every_restart(self):
        A       = create_spectrum_matrix(separated_spectrum(), seed=21)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR')
        solver  = ThickRestartLanczos(params, MatrixOperator(A))
        restart = solver._restart
        errors  = []

        def checked(size, broke):
            restart(size, broke)
            if not broke:
                S = np.column_stack(solver.kspace[:solver.state.num_keep + 1])
                errors.append(np.max(np.abs(S.conj().T @ S - np.eye(S.shape[1]))))

        solver._restart = checked
        result          = solver.solve()

        assert result.converged
        assert len(errors) >= 1
        assert max(errors) < 1e-10

    def test_locked_pairs_frozen(self):
        """A pair is locked below tol and neither its residual nor its vector changes later."""
        A       = create_spectrum_matrix(separated_spectrum(), seed=21)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR', tol=1e-10, lock_tol=1e-10)
        solver  = ThickRestartLanczos(params, MatrixOperator(A))
        restart = solver._restart
        frozen  = []
        vectors = []

        def checked(size, broke):
            nl = solver.state.num_locked
            restart(size, broke)
            nl_new = solver.state.num_locked
            assert np.all(solver.residua[nl:nl_new] < params.tol * solver.mat_norm)
            assert np.array_equal(solver.residua[:nl], np.asarray(frozen))
            assert all(a is b for a, b in zip(solver.kspace[:nl], vectors))
            frozen.extend(solver.residua[nl:nl_new])
            vectors.extend(solver.kspace[nl:nl_new])

        solver._restart = checked
        result          = solver.solve()

        assert result.converged
        assert solver.state.num_locked >= 4
        assert len(frozen) == solver.state.num_locked
        assert np.allclose(result.eigenvalues, [-5.0, -4.0, -3.0, -2.0], atol=1e-8)

    def test_iterations_count_krylov_steps(self):
        _, solver, result = self._solve()
        assert solver.matvecs == result.iterations + result.num_converged

    def test_eigenvectors_orthonormal(self):
        _, _, result = self._solve()
        V = result.eigenvectors
        assert np.allclose(V.conj().T @ V, np.eye(V.shape[1]), atol=1e-8)

    def test_reorder_idempotent(self):
        _, solver, _ = self._solve()
        n       = solver.state.num_keep
        alpha   = solver.arrow.alpha[:n].copy()
        vectors = list(solver.kspace[:n])
        solver.reorder()
        assert np.array_equal(solver.arrow.alpha[:n], alpha)
        assert all(a is b for a, b in zip(solver.kspace[:n], vectors))

    def test_sequential_orthogonalisation_matches_block(self):
        _, _, block = self._solve(block_orthogonalise=True)
        _, _, seq   = self._solve(block_orthogonalise=False)
        assert seq.converged
        assert np.allclose(block.eigenvalues, seq.eigenvalues, atol=1e-9)

    def test_check_interval_stops_early(self):
        _, _, full  = self._solve()
        _, _, early = self._solve(check_interval=4)
        assert early.converged
        assert np.allclose(early.eigenvalues, full.eigenvalues, atol=1e-9)
        assert early.iterations <= full.iterations

    def test_given_start_vector_is_reproducible(self):
        A       = create_spectrum_matrix(separated_spectrum(), seed=21)
        v0      = np.ones(A.shape[0])
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR')
        r1      = ThickRestartLanczos(params, MatrixOperator(A)).solve(v0=v0)
        r2      = ThickRestartLanczos(params, MatrixOperator(A)).solve(v0=v0)
        assert r1.iterations == r2.iterations
        assert np.allclose(r1.eigenvalues, r2.eigenvalues, atol=1e-12)

    def test_zero_start_vector_rejected(self):
        A       = create_spectrum_matrix(separated_spectrum(), seed=21)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4)
        with pytest.raises(ConfigurationError):
            ThickRestartLanczos(params, MatrixOperator(A)).solve(v0=np.zeros(A.shape[0]))

    def test_timings_and_counters(self):
        _, solver, _ = self._solve()
        t = solver.timings()
        for phase in ("total", "matvec", "eigen", "multiblas", "svd", "io"):
            assert phase in t
        assert t["matvec"] > 0.0
        assert t["matvecs"] == solver.operator.applications
        assert t["flops"] == solver.operator.applications * solver.operator.flops_per_apply()

class TestTRLMTightKrylovSpace:
    """n_conv = n_kr - 1: converged pairs get locked to free room for the last one."""

    def test_one_free_krylov_vector(self):
        evals   = np.concatenate([np.arange(1.0, 8.0), np.linspace(50.0, 60.0, 43)])
        A       = np.diag(evals)
        params  = EigenParams(n_ev=4, n_kr=8, n_conv=7, spectrum='SR', max_restarts=300)
        solver  = ThickRestartLanczos(params, MatrixOperator(A))
        result  = solver.solve()

        assert result.converged
        assert result.num_converged == 7
        assert np.allclose(result.eigenvalues, np.arange(1.0, 8.0), atol=1e-8)
        assert np.all(result.residual_norms < 1e-7)
        assert 0 <= solver.state.num_locked <= solver.state.num_keep <= params.n_kr

    def test_largest_with_one_free_vector(self):
        evals   = np.concatenate([np.linspace(-10.0, 0.0, 45), np.arange(21.0, 26.0)])
        A       = create_spectrum_matrix(evals, seed=31)
        params  = EigenParams(n_ev=3, n_kr=6, n_conv=5, spectrum='LR', max_restarts=300)
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert result.converged
        assert np.allclose(result.eigenvalues, [25.0, 24.0, 23.0, 22.0, 21.0], atol=1e-8)

# ----------------------------------
#! Configuration errors
# ----------------------------------

class TestTRLMConfiguration:

    def test_krylov_space_larger_than_problem(self):
        A = np.diag(np.arange(1.0, 11.0))
        with pytest.raises(ConfigurationError):
            ThickRestartLanczos(EigenParams(n_ev=4, n_kr=12), MatrixOperator(A))

    def test_non_hermitian_plain_mode_rejected(self):
        rng = np.random.default_rng(0)
        M   = rng.standard_normal((30, 30))
        with pytest.raises(ConfigurationError):
            ThickRestartLanczos(EigenParams(n_ev=4, n_kr=12), MatrixOperator(M))

    def test_all_krylov_vectors_wanted_rejected(self):
        with pytest.raises(ConfigurationError):
            EigenParams(n_ev=4, n_kr=8, n_conv=8)

    def test_space_dimension_mismatch(self):
        A = np.diag(np.arange(1.0, 31.0))
        with pytest.raises(ConfigurationError):
            ThickRestartLanczos(EigenParams(n_ev=4, n_kr=12), MatrixOperator(A), VectorSpace(20))

# ----------------------------------
#! Chebyshev acceleration
# ----------------------------------

class TestTRLMChebyshev:

    def test_smallest_with_explicit_bounds(self):
        A       = create_spectrum_matrix(separated_spectrum(), seed=17)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR',
                            use_poly_acc=True, poly_deg=8, a_min=-0.5, a_max=15.5)
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert result.converged
        assert np.allclose(result.eigenvalues, [-5.0, -4.0, -3.0, -2.0], atol=1e-6)

    def test_largest_with_explicit_bounds(self):
        A       = create_spectrum_matrix(separated_spectrum(), seed=19)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='LR',
                            use_poly_acc=True, poly_deg=8, a_min=-5.5, a_max=10.5)
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert result.converged
        assert np.allclose(result.eigenvalues, [15.0, 14.0, 13.0, 12.0], atol=1e-6)

    def test_upper_bound_estimated(self):
        A       = create_spectrum_matrix(separated_spectrum(), seed=17)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=3, spectrum='SR',
                            use_poly_acc=True, poly_deg=6, a_min=-0.5)
        solver  = ThickRestartLanczos(params, MatrixOperator(A))
        result  = solver.solve()

        assert solver.cheby_bounds[1] > 15.0
        assert np.allclose(result.eigenvalues, [-5.0, -4.0, -3.0], atol=1e-6)

    def test_bounds_from_operator_hint(self):
        A       = create_spectrum_matrix(separated_spectrum(), seed=17)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=3, spectrum='SR', use_poly_acc=True, poly_deg=6)
        solver  = ThickRestartLanczos(params, MatrixOperator(A, spectral_bounds=(-0.5, 15.5)))
        result  = solver.solve()

        assert solver.cheby_bounds == (-0.5, 15.5)
        assert np.allclose(result.eigenvalues, [-5.0, -4.0, -3.0], atol=1e-6)

    def test_iterations_count_filter_applications(self):
        A       = create_spectrum_matrix(separated_spectrum(), seed=17)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=3, spectrum='SR',
                            use_poly_acc=True, poly_deg=6, a_min=-0.5, a_max=15.5)
        solver  = ThickRestartLanczos(params, MatrixOperator(A))
        result  = solver.solve()

        assert result.iterations == solver.state.iter
        assert solver.matvecs == 6 * result.iterations + result.num_converged

    def test_missing_cutoff_rejected(self):
        A       = create_spectrum_matrix(separated_spectrum(), seed=17)
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=3, spectrum='LR', use_poly_acc=True, poly_deg=4, a_min=-6.0)
        with pytest.raises(ConfigurationError):
            ThickRestartLanczos(params, MatrixOperator(A)).solve()

# ----------------------------------
#! Breakdown and exhaustion
# ----------------------------------

class TestTRLMBreakdown:

    def test_few_distinct_eigenvalues(self):
        """A random start spans a 3-dimensional invariant subspace."""
        A       = np.diag(np.repeat([1.0, 2.0, 3.0], 10))
        params  = EigenParams(n_ev=2, n_kr=8, n_conv=3, spectrum='SR')
        solver  = ThickRestartLanczos(params, MatrixOperator(A))
        result  = solver.solve()

        assert solver.state.breakdowns >= 1
        assert result.converged
        assert np.allclose(result.eigenvalues, [1.0, 2.0, 3.0], atol=1e-10)
        assert np.all(result.residual_norms < 1e-10)

    def test_start_vector_in_invariant_subspace(self):
        """Breakdown after two steps, continued with a random orthogonal vector."""
        evals   = np.concatenate([[1.0, 2.0, 3.0, 4.0], np.linspace(10.0, 35.0, 26)])
        A       = np.diag(evals)
        v0      = np.zeros(30)
        v0[:2]  = 1.0
        params  = EigenParams(n_ev=4, n_kr=12, n_conv=4, spectrum='SR')
        solver  = ThickRestartLanczos(params, MatrixOperator(A))
        result  = solver.solve(v0=v0)

        assert solver.state.breakdowns >= 1
        assert result.converged
        assert np.allclose(result.eigenvalues, [1.0, 2.0, 3.0, 4.0], atol=1e-8)

    def test_exhaustion_returns_incomplete_result(self):
        A       = np.diag(np.linspace(1.0, 200.0, 200))
        params  = EigenParams(n_ev=4, n_kr=10, n_conv=4, spectrum='SR', max_restarts=1)
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert not result.converged
        assert result.incomplete
        assert result.restarts == 1
        assert result.num_converged < 4
        assert result.eigenvectors.shape == (200, result.num_converged)

    def test_exhaustion_raises_when_required(self):
        A       = np.diag(np.linspace(1.0, 200.0, 200))
        params  = EigenParams(n_ev=4, n_kr=10, n_conv=4, max_restarts=1, require_convergence=True)
        with pytest.raises(ConvergenceExhaustion) as exc:
            ThickRestartLanczos(params, MatrixOperator(A)).solve()
        assert exc.value.result is not None
        assert not exc.value.result.converged

# ----------------------------------
#! SVD mode
# ----------------------------------

def create_svd_matrix(n=60, seed=9):
    rng     = np.random.default_rng(seed)
    U, _    = np.linalg.qr(rng.standard_normal((n, n)))
    V, _    = np.linalg.qr(rng.standard_normal((n, n)))
    s       = np.concatenate([[10.0, 9.0, 8.0, 7.0], np.linspace(0.1, 5.0, n - 4)])
    return U @ np.diag(s) @ V.T

class TestTRLMSVD:

    def test_right_singular_vectors(self):
        M       = create_svd_matrix()
        params  = EigenParams(n_ev=6, n_kr=20, n_conv=3, spectrum='LR', use_norm_op=True, compute_svd=True)
        result  = ThickRestartLanczos(params, MatrixOperator(M)).solve()

        assert result.converged
        assert np.allclose(result.eigenvalues, [100.0, 81.0, 64.0], atol=1e-7)
        assert np.allclose(result.singular_values, [10.0, 9.0, 8.0], atol=1e-8)
        V, U = result.eigenvectors, result.singular_vectors
        for i, s in enumerate(result.singular_values):
            assert np.linalg.norm(M @ V[:, i] - s * U[:, i]) < 1e-6

    def test_left_singular_vectors(self):
        M       = create_svd_matrix(seed=10)
        params  = EigenParams(n_ev=6, n_kr=20, n_conv=3, spectrum='LR', use_norm_op=True, use_dagger=True, compute_svd=True)
        result  = ThickRestartLanczos(params, MatrixOperator(M)).solve()

        assert np.allclose(result.singular_values, [10.0, 9.0, 8.0], atol=1e-8)
        U, V = result.eigenvectors, result.singular_vectors
        for i, s in enumerate(result.singular_values):
            assert np.linalg.norm(M.T @ U[:, i] - s * V[:, i]) < 1e-6

# ----------------------------------
#! Checkpoints
# ----------------------------------

class TestTRLMCheckpoint:

    def _params(self, **kwargs):
        return EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR', **kwargs)

    def test_save_then_load(self, tmp_path):
        A       = create_spectrum_matrix(-separated_spectrum(), seed=23)
        path    = str(tmp_path / "evecs")
        first   = ThickRestartLanczos(self._params(vec_outfile=path), MatrixOperator(A)).solve()
        second  = ThickRestartLanczos(self._params(vec_infile=path, require_load=True), MatrixOperator(A)).solve()

        assert second.converged
        assert second.restarts == 0
        assert second.iterations == 0
        assert np.allclose(second.eigenvalues, first.eigenvalues, atol=1e-10)

    def test_singular_triplets_after_load(self, tmp_path):
        M       = create_svd_matrix()
        path    = str(tmp_path / "svd")
        params  = EigenParams(n_ev=6, n_kr=20, n_conv=3, spectrum='LR', use_norm_op=True, compute_svd=True)
        first   = ThickRestartLanczos(params.replace(vec_outfile=path), MatrixOperator(M)).solve()
        second  = ThickRestartLanczos(params.replace(vec_infile=path, require_load=True), MatrixOperator(M)).solve()

        assert second.restarts == 0
        assert second.singular_values is not None
        assert np.allclose(second.singular_values, first.singular_values, atol=1e-10)
        assert np.allclose(second.singular_values, [10.0, 9.0, 8.0], atol=1e-8)
        V, U = second.eigenvectors, second.singular_vectors
        assert U.shape == V.shape
        for i, s in enumerate(second.singular_values):
            assert np.linalg.norm(M @ V[:, i] - s * U[:, i]) < 1e-6

    def test_missing_file_falls_back(self, tmp_path):
        A       = create_spectrum_matrix(-separated_spectrum(), seed=23)
        params  = self._params(vec_infile=str(tmp_path / "missing"))
        result  = ThickRestartLanczos(params, MatrixOperator(A)).solve()

        assert result.converged
        assert result.restarts >= 1
        assert np.allclose(result.eigenvalues, [-15.0, -14.0, -13.0, -12.0], atol=1e-8)

    def test_missing_file_strict(self, tmp_path):
        A       = create_spectrum_matrix(-separated_spectrum(), seed=23)
        params  = self._params(vec_infile=str(tmp_path / "missing"), require_load=True)
        with pytest.raises(ValidationError):
            ThickRestartLanczos(params, MatrixOperator(A)).solve()

    def test_wrong_vectors_rejected(self, tmp_path):
        A       = create_spectrum_matrix(-separated_spectrum(), seed=23)
        path    = str(tmp_path / "random")
        solver  = ThickRestartLanczos(self._params(), MatrixOperator(A))
        rng     = np.random.default_rng(0)
        solver.save_vectors([rng.standard_normal(A.shape[0]) for _ in range(4)], path)

        with pytest.raises(ValidationError):
            ThickRestartLanczos(self._params(vec_infile=path, require_load=True), MatrixOperator(A)).solve()
        result = ThickRestartLanczos(self._params(vec_infile=path), MatrixOperator(A)).solve()
        assert result.converged and result.restarts >= 1

# ----------------------------------
#! JAX backend
# ----------------------------------

@pytest.mark.skipif(not JAX_AVAILABLE, reason="JAX not available")
class TestTRLMJax:

    def test_smallest_eigenvalues_jax(self):
        import jax.numpy as jnp
        A       = create_spectrum_matrix(separated_spectrum(), seed=29)
        Aj      = jnp.asarray(A)
        op      = FunctionOperator(lambda x: Aj @ x, dim=A.shape[0], hermitian=True)
        space   = VectorSpace(A.shape[0], np.float64, backend='jax')
        params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR')
        result  = ThickRestartLanczos(params, op, space).solve()

        assert result.converged
        assert np.allclose(result.eigenvalues, [-5.0, -4.0, -3.0, -2.0], atol=1e-8)

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
