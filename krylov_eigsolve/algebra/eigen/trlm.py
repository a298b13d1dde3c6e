r"""
Thick-Restart Lanczos Method (TRLM)

Computes `n_conv` extremal eigenpairs of a Hermitian operator $A$ with a
restarted Lanczos iteration that keeps a thick block of Ritz vectors between
restarts and locks the ones that converged to working precision.

One restart cycle:

    1. Extend the factorisation from `num_keep` to `n_kr` vectors with the
       Lanczos recurrence
       $$
       \beta_j v_{j+1} = A v_j - \alpha_j v_j - \beta_{j-1} v_{j-1},
       $$
       fully re-orthogonalised against all previous basis vectors. The first
       step after a restart couples to every kept Ritz vector, which gives
       the projected matrix its arrow shape (see `ArrowMatrix`).
    2. Diagonalise the active (unlocked) block $A = Y \Theta Y^T$, sort the
       Ritz values in the wanted order and estimate the residuals
       $r_i = |\beta_{last} Y_{last,i}|$.
    3. Lock the leading Ritz pairs with $r_i < \epsilon_{lock} \|A\|$, count
       the leading converged ones ($r_i < tol \|A\|$) and keep
       $k = c + (n_{kr} - n_{conv})/2$ Ritz vectors
       $\tilde v_i = \sum_j v_j Y_{ji}$ plus the residual vector. When that
       block leaves no room to extend, the converged pairs are locked too.

A vanishing $\beta$ means the Krylov space is invariant: the step is
reported as a `KrylovBreakdown`, the last coupling is set to zero, the block
gets locked and the iteration continues with a random vector orthogonal to
everything found so far.

References:
    K. Wu and H. Simon, "Thick-restart Lanczos method for large symmetric
    eigenvalue problems", SIAM J. Matrix Anal. Appl. 22, 602 (2000).

----------------------------------------------
File        : krylov_eigsolve/algebra/eigen/trlm.py
----------------------------------------------
"""

from typing import List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .arrow import ArrowMatrix
from .errors import ConfigurationError, ConvergenceExhaustion, KrylovBreakdown, ValidationError
from .params import EigenParams
from .result import ConvergenceState, EigenResult
from .solver import EigenSolver
from ..vectors import VectorSpace

# ----------------------------------------------------------------------------------------
#! Solver
# ----------------------------------------------------------------------------------------

class ThickRestartLanczos(EigenSolver):
    r"""
    Thick-restart Lanczos eigensolver with locking.

    Parameters:
    -----------
        params:
            `EigenParams`; n_kr must not exceed the global problem dimension.
        operator:
            `OperatorAdapter` or matrix.
        space:
            Vector space (serial NumPy by default).
        **kwargs:
            rng, store, logger, verbose (see `EigenSolver`).

    Attributes:
    -----------
        kspace:
            Krylov basis, `n_kr + 1` vectors; the first `num_locked` are locked
            eigenvectors, up to `num_keep` kept Ritz vectors, `kspace[num_keep]`
            the residual (restart) vector.
        arrow:
            Projected arrow/tridiagonal matrix.
        residua:
            Residual estimates of the current Ritz pairs.
        state:
            `ConvergenceState` counters.

    Example:
        >>> params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR')
        >>> solver  = ThickRestartLanczos(params, MatrixOperator(A))
        >>> result  = solver.solve()
        >>> result.eigenvalues, result.converged
    """

    BREAKDOWN_ATTEMPTS  = 3
    MAX_KEEP_MARGIN     = 12

    def __init__(self, params: EigenParams, operator, space: Optional[VectorSpace] = None, **kwargs):
        super().__init__(params, operator, space, **kwargs)

        n_kr = params.n_kr
        if n_kr > self.space.global_dim:
            raise ConfigurationError(f"n_kr={n_kr} exceeds the problem dimension {self.space.global_dim}")

        self.arrow      = ArrowMatrix(n_kr)
        self.residua    = np.zeros(n_kr, dtype=np.float64)
        self.state      = ConvergenceState()
        self.kspace     : List = []
        self.mat_norm   = 0.0
        self.evals      : Optional[NDArray] = None

    # ------------------------------------------------------------------------------------
    #! ordering
    # ------------------------------------------------------------------------------------

    def _order(self, values: NDArray) -> NDArray:
        """ Stable permutation putting `values` in the wanted order. """
        keys = self._key(values)
        if self.params.reverse_order:
            return np.argsort(-keys, kind='stable')
        return np.argsort(keys, kind='stable')

    @classmethod
    def _margin(cls, dim: int) -> int:
        """ Lanczos steps left free for the extension of an active block of size dim. """
        return max(1, min(cls.MAX_KEEP_MARGIN, dim // 4))

    @staticmethod
    def _leading(mask: NDArray) -> int:
        """ Length of the leading run of True entries. """
        if mask.size == 0 or mask.all():
            return int(mask.size)
        return int(np.argmin(mask))

    # ------------------------------------------------------------------------------------
    #! Lanczos step
    # ------------------------------------------------------------------------------------

    def lanczos_step(self, j: int) -> None:
        """
        Compute alpha_j, beta_j and v_{j+1} from v_j.

        Raises
        ------
            KrylovBreakdown:
                When beta_j is negligible. alpha_j and beta_j are stored, v_{j+1}
                is not.
        """
        space   = self.space
        arrow   = self.arrow
        st      = self.state
        kspace  = self.kspace
        v       = kspace[j]

        with self.pool.acquire(1) as tmp:
            tmp[0]  = self.cheby_op(v)
            r       = tmp[0]
            r_norm0 = space.norm(r)

            alpha   = space.re_inner_product(v, r)
            r       = space.axpy(-alpha, v, r)

            if j == st.num_keep and j > st.num_locked:
                # first step after a restart: the arrow row couples to every kept Ritz vector
                coupling    = space.lincomb(arrow.beta[st.num_locked:j], kspace[st.num_locked:j])
                r           = space.axpy(-1.0, coupling, r)
            elif j > st.num_keep:
                r           = space.axpy(-arrow.beta[j - 1], kspace[j - 1], r)

            r, _    = self._orthogonalise(kspace, r, j + 1)
            beta    = space.norm(r)

            arrow.alpha[j]  = alpha
            arrow.beta[j]   = beta
            arrow.size      = j + 1

            if beta <= self.params.breakdown_tol * max(r_norm0, self.mat_norm):
                raise KrylovBreakdown(j, beta)
            kspace[j + 1] = space.scale(1.0 / beta, r)

    # ------------------------------------------------------------------------------------
    #! projected problem
    # ------------------------------------------------------------------------------------

    def eigensolve_from_arrow_mat(self, num_locked: int, arrow_pos: int, size: int) -> Tuple[NDArray, NDArray]:
        """
        Ritz values and vectors of the active block, in the wanted order.
        """
        with self.timers("eigen"):
            theta, Y    = self.arrow.eigensolve(num_locked, arrow_pos, size)
        order           = self._order(theta)
        return theta[order], Y[:, order]

    def _count_converged(self, residua: NDArray, mat_norm: float) -> Tuple[int, int]:
        scale           = mat_norm if mat_norm > 0.0 else 1.0
        iter_locked     = self._leading(residua < self.params.lock_tol * scale)
        iter_converged  = max(iter_locked, self._leading(residua < self.params.tol * scale))
        return iter_locked, iter_converged

    def _merged_converged(self, theta: NDArray, iter_converged: int, num_locked: int) -> int:
        """
        Wanted converged pairs: the leading converged Ritz pairs plus the locked
        ones that precede the first unconverged Ritz value in the wanted order.
        """
        if num_locked == 0 or iter_converged >= theta.size:
            return num_locked + iter_converged
        pivot   = self._key(theta[iter_converged])
        locked  = self._key(self.arrow.alpha[:num_locked])
        wanted  = locked >= pivot if self.params.reverse_order else locked <= pivot
        return int(np.count_nonzero(wanted)) + iter_converged

    def compute_kept_ritz(self, num_locked: int, size: int, Y: NDArray, theta: NDArray, iter_keep: int, broke: bool) -> None:
        r"""
        Rotate the active basis into the first `iter_keep` Ritz vectors and
        rebuild the arrow: alpha = Ritz values, beta = beta_last * Y[-1, :].
        The residual vector moves behind the kept block.
        """
        arrow       = self.arrow
        beta_last   = arrow.beta[size - 1]
        end         = num_locked + iter_keep

        with self.timers("multiblas"):
            rotated = self.space.rotate(self.kspace[num_locked:size], Y[:, :iter_keep])
        self.kspace[num_locked:end] = rotated
        if not broke:
            self.kspace[end] = self.kspace[size]

        arrow.alpha[num_locked:end] = theta[:iter_keep]
        arrow.beta[num_locked:end]  = beta_last * Y[-1, :iter_keep]
        arrow.alpha[end:]           = 0.0
        arrow.beta[end:]            = 0.0
        arrow.size                  = end

    # ------------------------------------------------------------------------------------
    #! extension and restart
    # ------------------------------------------------------------------------------------

    def _check_early(self, j: int) -> bool:
        """ Non-destructive convergence check of the factorisation of size j. """
        st              = self.state
        nl              = st.num_locked
        theta, Y        = self.eigensolve_from_arrow_mat(nl, st.num_keep - nl, j)
        residua         = self.arrow.residuals(Y, j)
        mat_norm        = max(self.mat_norm, float(np.max(np.abs(theta))))
        _, iter_conv    = self._count_converged(residua, mat_norm)
        return self._merged_converged(theta, iter_conv, nl) >= self.params.n_conv

    def _extend(self) -> Tuple[int, bool]:
        """
        Lanczos steps from num_keep up to n_kr.

        Returns:
            (size of the factorisation, whether it ended in a breakdown)
        """
        p   = self.params
        st  = self.state
        j   = st.num_keep
        while j < p.n_kr:
            try:
                self.lanczos_step(j)
            except KrylovBreakdown as e:
                st.iter        += 1
                st.breakdowns  += 1
                self.logger.debug(f"{e}, invariant subspace of dimension {j + 1}", lvl=2, verbose=self.verbose)
                return j + 1, True
            st.iter    += 1
            j          += 1
            if p.check_interval > 0 and j < p.n_kr and (j - st.num_keep) % p.check_interval == 0:
                if self._check_early(j):
                    self.logger.debug(f"Early convergence at Krylov size {j}", lvl=2, verbose=self.verbose)
                    return j, False
        return p.n_kr, False

    def _restart(self, size: int, broke: bool) -> None:
        p       = self.params
        st      = self.state
        nl      = st.num_locked
        dim     = size - nl

        if broke:
            self.arrow.beta[size - 1] = 0.0

        theta, Y                    = self.eigensolve_from_arrow_mat(nl, st.num_keep - nl, size)
        residua                     = self.arrow.residuals(Y, size)
        self.residua[nl:size]       = residua
        self.mat_norm               = max(self.mat_norm, float(np.max(np.abs(theta))))

        iter_locked, iter_converged = self._count_converged(residua, self.mat_norm)
        num_converged               = self._merged_converged(theta, iter_converged, nl)
        done                        = num_converged >= p.n_conv
        last                        = st.restart_iter + 1 >= p.max_restarts

        # keep policy: converged block plus half of the remaining room
        grow        = iter_converged + (p.n_kr - num_converged) // 2
        cap         = dim - self._margin(dim)
        if grow > cap and iter_converged > iter_locked:
            # no room left to extend the unconverged pairs: freeze the ones converged at tol
            self.logger.debug(f"Locking {iter_converged - iter_locked} pairs converged at tol", lvl=2, verbose=self.verbose)
            iter_locked = iter_converged
            cap         = dim - self._margin(dim - iter_locked)
        iter_keep   = max(grow, p.n_ev - nl)
        iter_keep   = min(iter_keep, cap)
        iter_keep   = max(iter_keep, iter_locked)
        if done or last:
            iter_keep = max(iter_keep, iter_converged)
        iter_keep   = int(np.clip(iter_keep, 0, dim))

        self.compute_kept_ritz(nl, size, Y, theta, iter_keep, broke)

        st.iter_locked      = iter_locked
        st.iter_converged   = iter_converged
        st.iter_keep        = iter_keep
        st.num_keep         = nl + iter_keep
        st.num_locked       = nl + iter_locked
        st.num_converged    = num_converged
        st.converged        = done

        if st.converged:
            return
        if st.num_keep >= p.n_kr:
            self.logger.warning(f"Krylov space exhausted: {st.num_keep} vectors kept out of {p.n_kr}", lvl=1)
            st.exhausted = True
        elif broke and not self._inject_random(st.num_keep):
            self.logger.warning(f"Invariant subspace of dimension {st.num_keep} cannot be extended", lvl=1)
            st.exhausted = True

    def _inject_random(self, index: int) -> bool:
        """
        Place a random unit vector orthogonal to kspace[:index] at kspace[index].
        """
        space = self.space
        if index >= space.global_dim:
            return False
        threshold = np.sqrt(np.finfo(np.float64).eps)
        for _ in range(self.BREAKDOWN_ATTEMPTS):
            v       = space.random(self.rng)
            norm0   = space.norm(v)
            v, _    = self._orthogonalise(self.kspace, v, index)
            norm    = space.norm(v)
            if norm > threshold * norm0:
                self.kspace[index] = space.scale(1.0 / norm, v)
                return True
        return False

    def reorder(self) -> None:
        """
        Sort the kept vectors and their Ritz values into the wanted order (stable,
        so repeated calls leave the order unchanged).
        """
        n = self.state.num_keep
        if n == 0:
            return
        order                   = self._order(self.arrow.alpha[:n])
        self.kspace[:n]         = [self.kspace[i] for i in order]
        self.arrow.alpha[:n]    = self.arrow.alpha[:n][order]
        self.arrow.beta[:n]     = self.arrow.beta[:n][order]
        self.residua[:n]        = self.residua[:n][order]

    # ------------------------------------------------------------------------------------
    #! driver
    # ------------------------------------------------------------------------------------

    def _reset(self) -> None:
        self.state.reset()
        self.arrow.reset()
        self.residua[:] = 0.0
        self.mat_norm   = 0.0
        self.evals      = None
        self.timers.reset()
        self.pool.clear()

    def _initialise(self, v0=None) -> None:
        space       = self.space
        self.kspace = space.allocate(self.params.n_kr + 1)
        v           = space.random(self.rng) if v0 is None else space.asarray(v0)
        norm        = space.norm(v)
        if norm == 0.0:
            raise ConfigurationError("The starting vector has zero norm")
        self.kspace[0] = space.scale(1.0 / norm, v)

    def _load_checkpoint(self) -> Optional[EigenResult]:
        p = self.params
        try:
            return self.load_from_file(p.vec_infile)
        except ValidationError as e:
            if p.require_load:
                raise
            self.logger.warning(f"Discarding checkpoint '{p.vec_infile}': {e}", lvl=1)
        except OSError as e:
            if p.require_load:
                raise ValidationError(f"Cannot load checkpoint '{p.vec_infile}': {e}") from e
            self.logger.warning(f"Cannot load checkpoint '{p.vec_infile}' ({e}), starting from a random vector", lvl=1)
        return None

    def _iterate(self) -> None:
        p   = self.params
        st  = self.state
        while st.restart_iter < p.max_restarts and not st.converged and not st.exhausted:
            size, broke = self._extend()
            self._restart(size, broke)
            st.restart_iter += 1
            self.logger.debug(f"Restart {st.restart_iter}: converged {st.num_converged}/{p.n_conv}, "
                            f"locked {st.num_locked}, kept {st.num_keep}", lvl=1, verbose=self.verbose)

    def _finish(self) -> EigenResult:
        p       = self.params
        st      = self.state
        space   = self.space

        self.reorder()
        k               = p.n_conv if st.converged else min(st.num_converged, p.n_conv)
        vectors         = self.kspace[:k]
        evals, res      = self.compute_evals(vectors)
        self.evals      = evals

        sigma, companions = None, None
        if p.compute_svd and k > 0:
            sigma, companions = self.compute_svd(vectors, evals)
            companions        = space.stack(companions)
        if p.vec_outfile and k > 0:
            self.save_vectors(vectors, p.vec_outfile, np.real(evals))

        return EigenResult(
            eigenvalues         = np.real(evals),
            eigenvectors        = space.stack(vectors),
            subspacevectors     = space.stack(self.kspace[:st.num_keep]),
            iterations          = st.iter,
            converged           = st.converged,
            residual_norms      = res,
            num_converged       = k,
            restarts            = st.restart_iter,
            singular_values     = sigma,
            singular_vectors    = companions,
        )

    def solve(self, v0=None) -> EigenResult:
        """
        Run the thick-restart Lanczos iteration.

        Parameters:
        -----------
            v0:
                Optional starting vector (random from the solver's context otherwise).

        Returns:
            EigenResult: `converged=False` marks a best-effort result holding the
            pairs that did converge.

        Raises
        ------
            ConvergenceExhaustion:
                When `require_convergence` is set and fewer than `n_conv` pairs converged.
            ValidationError:
                When `require_load` is set and the checkpoint cannot be used.
        """
        p = self.params
        self._reset()

        with self.timers("total"):
            result = self._load_checkpoint() if p.vec_infile else None
            if result is None:
                self._initialise(v0)
                self._iterate()
                result = self._finish()

        st = self.state
        if self.verbose:
            self.logger.info(f"TRLM: {result.num_converged}/{p.n_conv} converged after {st.restart_iter} restarts, "
                            f"{st.iter} Lanczos steps, {st.breakdowns} breakdowns", lvl=1)
            self.log_timings()

        if not result.converged:
            msg = (f"TRLM did not converge: {result.num_converged}/{p.n_conv} eigenpairs after "
                f"{st.restart_iter} restarts" + (" (Krylov space exhausted)" if st.exhausted else ""))
            if p.require_convergence:
                raise ConvergenceExhaustion(msg, result)
            self.logger.warning(msg, lvl=1)
        return result

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
