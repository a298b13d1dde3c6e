r"""
Krylov Eigensolver Core

Shared machinery of the iterative eigensolvers:

    - operator application in the configured form ($M$, $M^\dagger$,
      $M^\dagger M$, $M M^\dagger$), with flop and timing counters;
    - Chebyshev polynomial acceleration
        $$
        T_0 = x,\quad T_1 = L x,\quad T_k = 2 L T_{k-1} - T_{k-2},
        \qquad L = \pm (A - \theta)/\delta,
        $$
      with $\theta = (b + a)/2$ and $\delta = (b - a)/2$, which maps the
      unwanted interval $[a, b]$ onto $[-1, 1]$ and the wanted end of the
      spectrum onto $L > 1$ where $T_d$ grows fastest;
    - modified Gram-Schmidt (sequential or block) with the DGKS
      "twice is enough" re-orthogonalisation;
    - deflation, Rayleigh quotients and residuals;
    - checkpoint load/save through a `VectorStore`;
    - singular vectors from eigenvectors of a normal operator.

Concrete algorithms (`ThickRestartLanczos`, `ArpackEigensolver`) implement
`solve`.

----------------------------------------------
File        : krylov_eigsolve/algebra/eigen/solver.py
----------------------------------------------
"""

from typing import Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .errors import ConfigurationError, DomainError, ValidationError
from .params import EigenParams
from .result import EigenResult
from ..operators import OperatorAdapter, OperatorMode, as_operator
from ..vectors import VectorPool, VectorSpace
from ..ran_wrapper import RandomContext
from ...common.flog import get_global_logger, log_timing_summary
from ...common.hdf5_lib import HDF5VectorStore
from ...common.timer import TimerSet

if TYPE_CHECKING:
    from ...common.flog import Logger
    from ...common.hdf5_lib import VectorStore

# ----------------------------------------------------------------------------------------
#! Core
# ----------------------------------------------------------------------------------------

class EigenSolver:
    r"""
    Abstract base of the Krylov eigensolvers.

    Parameters:
    -----------
        params:
            Validated `EigenParams`.
        operator:
            `OperatorAdapter`, or a matrix wrapped with `as_operator`.
        space:
            Vector space of the problem (serial NumPy space of the operator
            dimension by default).
        rng:
            Random context for starting vectors (seeded from `params.seed`).
        store:
            Checkpoint store (HDF5 by default).
        logger:
            Logger (global logger by default).
        verbose:
            Log restart progress and a timing table.
    """

    PROFILE_PHASES  = ("total", "matvec", "eigen", "multiblas", "svd", "io")
    DEGENERACY_TOL  = 1e-12
    CHEBY_MARGIN    = 1.1

    def __init__(self,
                params      : EigenParams,
                operator,
                space       : Optional[VectorSpace]     = None,
                *,
                rng         : Optional[RandomContext]   = None,
                store       : Optional['VectorStore']   = None,
                logger      : Optional['Logger']        = None,
                verbose     : bool                      = False):
        if not isinstance(params, EigenParams):
            raise ConfigurationError(f"params must be EigenParams, got {type(params).__name__}")

        self.params     = params
        self.operator   = as_operator(operator) if not isinstance(operator, OperatorAdapter) else operator
        self.mode       = params.operator_mode
        self.space      = space if space is not None else VectorSpace(self.operator.dim, self.operator.dtype)
        self.logger     = logger if logger is not None else get_global_logger()
        self.verbose    = verbose
        self.rng        = rng if rng is not None else RandomContext(params.seed)
        self.store      = store if store is not None else HDF5VectorStore(rank=self.space.comm.rank, size=self.space.comm.size, logger=self.logger)

        if self.space.dim != self.operator.dim:
            raise ConfigurationError(f"Operator dimension {self.operator.dim} does not match vector space dimension {self.space.dim}")
        if np.issubdtype(self.operator.dtype, np.complexfloating) and not self.space.is_complex:
            raise ConfigurationError("A complex operator needs a complex vector space")
        if not self.mode.is_normal and not self.operator.hermitian:
            raise ConfigurationError(f"Operator mode {self.mode.value} of a non-Hermitian operator is not supported, use use_norm_op=True")

        self.pool           = VectorPool(self.space)
        self.timers         = TimerSet(self.PROFILE_PHASES)
        self.matvecs        = 0
        self.cheby_bounds   : Optional[Tuple[float, float]] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.params}, operator={self.operator!r})"

    # ------------------------------------------------------------------------------------

    @staticmethod
    def create(params: EigenParams, operator, space: Optional[VectorSpace] = None, method: str = 'trlm', **kwargs) -> 'EigenSolver':
        """
        Instantiate the algorithm selected by `method` ('trlm', 'arpack', 'auto').
        """
        from .factory import make_eigensolver
        return make_eigensolver(method, params, operator, space, **kwargs)

    def solve(self, *args, **kwargs) -> EigenResult:
        """
        Solve the eigenvalue problem.

        Returns:
            EigenResult: Standardized result container.
        """
        raise NotImplementedError("This method should be implemented by subclasses.")

    def __call__(self, *args, **kwargs) -> EigenResult:
        return self.solve(*args, **kwargs)

    def _key(self, values) -> NDArray:
        """ Sort key of eigenvalues: |x| for magnitude spectra, x otherwise. """
        values = np.real(np.asarray(values))
        return np.abs(values) if self.params.spectrum.by_magnitude else values

    # ------------------------------------------------------------------------------------
    #! operator application
    # ------------------------------------------------------------------------------------

    def mat_vec(self, x):
        """
        Apply the operator in the configured mode (M, Mdag, MdagM, MMdag).
        """
        op = self.operator
        with self.timers("matvec"):
            if self.mode is OperatorMode.M:
                y = op.apply(x)
            elif self.mode is OperatorMode.MDAG:
                y = op.apply_adjoint(x)
            elif self.mode is OperatorMode.MDAGM:
                y = op.apply_adjoint(op.apply(x))
            else:
                y = op.apply(op.apply_adjoint(x))
        self.matvecs += 1
        return self.space.asarray(y)

    def cheby_op(self, x):
        r"""
        $T_d(L)\, x$ when polynomial acceleration is on, the plain `mat_vec` otherwise.
        """
        if not self.params.use_poly_acc:
            return self.mat_vec(x)
        if self.params.poly_deg < 1:
            raise ConfigurationError(f"Polynomial degree must be >= 1, got {self.params.poly_deg}")
        if self.cheby_bounds is None:
            self.cheby_bounds = self.resolve_cheby_bounds()

        a, b    = self.cheby_bounds
        theta   = 0.5 * (b + a)
        delta   = 0.5 * (b - a)
        # wanted values below a (SR) or above b (LR) are mapped onto L > 1
        sign    = 1.0 if self.params.spectrum.largest else -1.0
        space   = self.space

        def affine(v):
            return space.scale(sign / delta, space.axpy(-theta, v, self.mat_vec(v)))

        with self.pool.acquire(3) as tmp:
            tmp[0] = x
            tmp[1] = affine(x)
            for _ in range(2, self.params.poly_deg + 1):
                tmp[2]  = space.axpy(-1.0, tmp[0], space.scale(2.0, affine(tmp[1])))
                tmp[0]  = tmp[1]
                tmp[1]  = tmp[2]
            return tmp[1]

    def resolve_cheby_bounds(self) -> Tuple[float, float]:
        """
        Interval [a, b] suppressed by the Chebyshev filter.

        Explicit parameters win over the operator's spectral-bounds hint. The
        outer bound on the unwanted side of the spectrum (a_max when looking for
        the smallest values, a_min for the largest) is estimated by power
        iteration when neither source provides it.
        """
        p           = self.params
        hint        = self.operator.spectral_bounds
        a_min       = p.a_min if p.a_min is not None else (hint[0] if hint is not None else None)
        a_max       = p.a_max if p.a_max is not None else (hint[1] if hint is not None else None)

        if p.spectrum.largest:
            if a_max is None:
                raise ConfigurationError("Chebyshev acceleration for the largest eigenvalues needs a_max (the wanted cut-off)")
            if a_min is None:
                a_min = -self.CHEBY_MARGIN * self.estimate_spectral_max()
        else:
            if a_min is None:
                raise ConfigurationError("Chebyshev acceleration for the smallest eigenvalues needs a_min (the wanted cut-off)")
            if a_max is None:
                a_max = self.CHEBY_MARGIN * self.estimate_spectral_max()

        if not a_min < a_max:
            raise ConfigurationError(f"Chebyshev bounds require a_min < a_max, got [{a_min}, {a_max}]")
        self.logger.debug(f"Chebyshev filter: degree {p.poly_deg}, interval [{a_min:.6e}, {a_max:.6e}]", lvl=1, verbose=self.verbose)
        return float(a_min), float(a_max)

    def estimate_spectral_max(self, iters: int = 100, tol: float = 1e-4) -> float:
        """
        Power-iteration estimate of the largest eigenvalue magnitude of the
        operator in the configured mode.
        """
        space   = self.space
        x       = space.random(self.rng.spawn())
        x       = space.scale(1.0 / space.norm(x), x)
        lam     = 0.0
        for it in range(iters):
            y       = self.mat_vec(x)
            lam_new = space.norm(y)
            if lam_new == 0.0:
                return 0.0
            x       = space.scale(1.0 / lam_new, y)
            if abs(lam_new - lam) < tol * lam_new:
                lam = lam_new
                break
            lam     = lam_new
        self.logger.debug(f"Spectral radius estimate {lam:.6e} after {it + 1} power iterations", lvl=1, verbose=self.verbose)
        return float(lam)

    # ------------------------------------------------------------------------------------
    #! orthogonalisation
    # ------------------------------------------------------------------------------------

    def orthogonalise(self, vectors: Sequence, r, count: int) -> Tuple[object, complex]:
        r"""
        Modified Gram-Schmidt of `r` against `vectors[:count]`, one reduction
        per projection.

        The pass is repeated once when the norm of `r` dropped below
        `reorth_eta` times its previous value (DGKS criterion).

        Returns:
            (r orthogonalised, sum of the first-pass inner products)
        """
        space       = self.space
        total       = 0.0
        norm_before = space.norm(r)
        with self.timers("multiblas"):
            for sweep in range(2):
                for i in range(count):
                    c   = space.inner_product(vectors[i], r)
                    r   = space.axpy(-c, vectors[i], r)
                    if sweep == 0:
                        total += c
                norm_after = space.norm(r)
                if norm_after >= self.params.reorth_eta * norm_before:
                    break
                norm_before = norm_after
        return r, total

    def block_orthogonalise(self, vectors: Sequence, r, count: int) -> Tuple[object, complex]:
        """
        Same contract as `orthogonalise`, with all `count` projections of a
        pass computed by a single block inner product.
        """
        space       = self.space
        total       = 0.0
        if count == 0:
            return r, total
        basis       = list(vectors[:count])
        norm_before = space.norm(r)
        with self.timers("multiblas"):
            for sweep in range(2):
                coeffs  = space.block_inner_product(basis, r)
                r       = space.axpy(-1.0, space.lincomb(coeffs, basis), r)
                if sweep == 0:
                    total = np.sum(coeffs)
                norm_after = space.norm(r)
                if norm_after >= self.params.reorth_eta * norm_before:
                    break
                norm_before = norm_after
        return r, total

    def _orthogonalise(self, vectors: Sequence, r, count: int):
        if self.params.block_orthogonalise:
            return self.block_orthogonalise(vectors, r, count)
        return self.orthogonalise(vectors, r, count)

    # ------------------------------------------------------------------------------------
    #! deflation and eigenvalues
    # ------------------------------------------------------------------------------------

    def deflate(self,
                vectors         : Sequence,
                eigenvectors    : Sequence,
                eigenvalues     : Sequence[complex],
                skip_degenerate : bool              = False,
                tol             : Optional[float]   = None) -> List:
        r"""
        Deflated correction $\sum_i v_i \langle v_i, x\rangle / \lambda_i$ of
        every input vector $x$.

        Raises
        ------
            DomainError:
                When an eigenvalue is below `tol` in magnitude and
                `skip_degenerate` is False. With `skip_degenerate` the component
                is left out and a warning is logged.
        """
        tol         = self.DEGENERACY_TOL if tol is None else tol
        eigenvalues = np.asarray(eigenvalues)
        if len(eigenvectors) != len(eigenvalues):
            raise ValueError(f"Got {len(eigenvectors)} eigenvectors but {len(eigenvalues)} eigenvalues")

        keep = np.abs(eigenvalues) >= tol
        if not np.all(keep):
            bad = np.flatnonzero(~keep).tolist()
            if not skip_degenerate:
                raise DomainError(f"Cannot deflate with near-zero eigenvalues at indices {bad}")
            self.logger.warning(f"Deflation skips near-zero eigenvalues at indices {bad}", lvl=1)

        basis   = [v for v, k in zip(eigenvectors, keep) if k]
        inv     = 1.0 / eigenvalues[keep]
        if not self.space.is_complex:
            inv = np.real(inv)
        out     = []
        with self.timers("multiblas"):
            for x in vectors:
                if not basis:
                    out.append(self.space.zeros())
                    continue
                coeffs = self.space.block_inner_product(basis, x)
                out.append(self.space.lincomb(coeffs * inv, basis))
        return out

    def compute_evals(self, vectors: Sequence, k: Optional[int] = None) -> Tuple[NDArray, NDArray]:
        r"""
        Rayleigh quotients $\lambda_i = \langle v_i, A v_i\rangle / \langle v_i, v_i\rangle$
        and residuals $\|A v_i - \lambda_i v_i\|$ of the first `k` vectors,
        with the plain (unaccelerated) operator.
        """
        k       = len(vectors) if k is None else k
        space   = self.space
        evals   = np.zeros(k, dtype=np.complex128)
        residua = np.zeros(k, dtype=np.float64)
        for i in range(k):
            v           = vectors[i]
            w           = self.mat_vec(v)
            evals[i]    = space.inner_product(v, w) / space.norm2(v)
            residua[i]  = space.norm(space.axpy(-evals[i] if space.is_complex else -evals[i].real, v, w))
        return evals, residua

    # ------------------------------------------------------------------------------------
    #! singular vectors
    # ------------------------------------------------------------------------------------

    def compute_svd(self, eigenvectors: Sequence, eigenvalues: Sequence[complex]) -> Tuple[NDArray, List]:
        r"""
        Singular triplets from eigenpairs of a normal operator.

        For $M^\dagger M$ the eigenvectors are right singular vectors $v_i$ and
        $u_i = M v_i / \|M v_i\|$; for $M M^\dagger$ they are left singular
        vectors and $v_i = M^\dagger u_i / \|M^\dagger u_i\|$. In both cases
        $\sigma_i = \sqrt{|\lambda_i|}$. The norm of the companion vector
        before normalisation is compared with $\sigma_i$ as a consistency check.

        Returns:
            (singular values, companion vectors)
        """
        if not self.mode.is_normal:
            raise ConfigurationError("Singular vectors require a normal operator (use_norm_op=True)")

        space   = self.space
        sigma   = np.sqrt(np.abs(np.real(np.asarray(eigenvalues))))
        tol     = np.sqrt(self.params.tol)
        out     = []
        with self.timers("svd"):
            for i, v in enumerate(eigenvectors):
                w   = self.operator.apply(v) if self.mode is OperatorMode.MDAGM else self.operator.apply_adjoint(v)
                w   = space.asarray(w)
                nrm = space.norm(w) / np.sqrt(space.norm2(v))
                if abs(nrm - sigma[i]) > tol * max(1.0, sigma[i]):
                    self.logger.warning(f"Singular value {i}: |Mv|={nrm:.6e} differs from sqrt(lambda)={sigma[i]:.6e}", lvl=1)
                out.append(space.scale(1.0 / space.norm(w), w) if nrm > 0.0 else space.zeros())
        return sigma, out

    # ------------------------------------------------------------------------------------
    #! checkpoints
    # ------------------------------------------------------------------------------------

    def load_vectors(self, identifier: str, count: Optional[int] = None) -> List:
        """
        Load (at most `count`) vectors from the store into this space.
        """
        with self.timers("io"):
            vectors, _ = self.store.load(identifier)
        vectors = vectors if count is None else vectors[:count]
        return [self.space.asarray(v) for v in vectors]

    def save_vectors(self, vectors: Sequence, identifier: str, evals: Optional[NDArray] = None) -> None:
        with self.timers("io"):
            self.store.save([self.space.to_numpy(v) for v in vectors], identifier, evals)
        self.logger.info(f"Saved {len(vectors)} vectors to '{identifier}'", lvl=1, verbose=self.verbose)

    def load_from_file(self, identifier: Optional[str] = None) -> EigenResult:
        """
        Load `n_conv` eigenvectors, re-validate them and sort them like a fresh
        solve. In SVD mode the singular triplets are recomputed from them.

        Raises
        ------
            ValidationError:
                When fewer than `n_conv` vectors are available or a recomputed
                residual exceeds `tol * max(1, max|lambda|)`.
            FileNotFoundError, OSError:
                Propagated from the store.
        """
        identifier  = identifier if identifier is not None else self.params.vec_infile
        n_conv      = self.params.n_conv
        vectors     = self.load_vectors(identifier, n_conv)
        if len(vectors) < n_conv:
            raise ValidationError(f"'{identifier}' holds {len(vectors)} vectors, {n_conv} requested")

        space       = self.space
        vectors     = [space.scale(1.0 / space.norm(v), v) for v in vectors]
        evals, res  = self.compute_evals(vectors)
        mat_norm    = max(1.0, float(np.max(np.abs(evals))))
        bad         = np.flatnonzero(res > self.params.tol * mat_norm)
        if bad.size > 0:
            raise ValidationError(f"Loaded eigenpairs {bad.tolist()} exceed the tolerance (max residual {res.max():.3e})")

        # same ordering as a fresh solve
        keys        = self._key(evals)
        order       = np.argsort(-keys if self.params.reverse_order else keys, kind='stable')
        vectors     = [vectors[i] for i in order]
        evals, res  = evals[order], res[order]

        sigma, companions = None, None
        if self.params.compute_svd:
            sigma, companions = self.compute_svd(vectors, evals)
            companions        = space.stack(companions)

        self.logger.info(f"Loaded {len(vectors)} eigenpairs from '{identifier}'", lvl=1, verbose=self.verbose)
        return EigenResult(
            eigenvalues         = np.real(evals),
            eigenvectors        = space.stack(vectors),
            iterations          = 0,
            converged           = True,
            residual_norms      = res,
            num_converged       = len(vectors),
            restarts            = 0,
            singular_values     = sigma,
            singular_vectors    = companions,
        )

    # ------------------------------------------------------------------------------------
    #! profiling
    # ------------------------------------------------------------------------------------

    def timings(self) -> Dict[str, float]:
        """
        Elapsed seconds per profiled phase plus operator counters.
        """
        out                 = self.timers.durations()
        out["matvecs"]      = self.matvecs
        out["flops"]        = self.operator.flops
        return out

    def log_timings(self) -> None:
        durations   = self.timers.durations()
        total       = durations.pop("total")
        log_timing_summary(self.logger, durations, total,
                        title       = f"{type(self).__name__} timings",
                        extra_info  = [f"Operator applications: {self.matvecs}", f"Operator flops: {self.operator.flops}"])

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
