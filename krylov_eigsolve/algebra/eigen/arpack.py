"""
ARPACK Backend

Alternative to the thick-restart Lanczos solver built on the implicitly
restarted Lanczos method of ARPACK (`scipy.sparse.linalg.eigsh`). It takes
the same `EigenParams`, applies the operator in the same mode (optionally
Chebyshev accelerated) and recomputes eigenvalues and residuals with the
plain operator, so the results of both backends are directly comparable.

ARPACK works on the whole vector, hence only the serial NumPy space is
supported.

----------------------------------------------
File        : krylov_eigsolve/algebra/eigen/arpack.py
----------------------------------------------
"""

from typing import Optional

import numpy as np
from scipy.sparse.linalg import ArpackNoConvergence, LinearOperator, eigsh

from .errors import ConfigurationError, ConvergenceExhaustion
from .params import EigenParams, Spectrum
from .result import EigenResult
from .solver import EigenSolver
from ..vectors import VectorSpace

# ----------------------------------------------------------------------------------------

class ArpackEigensolver(EigenSolver):
    """
    SciPy `eigsh` wrapper sharing the configuration of `ThickRestartLanczos`.

    Mapping of the parameters:
        - spectrum SR/LR/SM/LM -> which SA/LA/SM/LM ('LA' under Chebyshev acceleration)
        - n_conv -> k, n_kr -> ncv (clamped to k < ncv <= n)
        - max_restarts -> maxiter, tol -> tol

    Example:
        >>> params = EigenParams(n_ev=8, n_kr=24, n_conv=4, spectrum='SR')
        >>> result = ArpackEigensolver(params, MatrixOperator(A)).solve()
    """

    WHICH = {
        Spectrum.SR : 'SA',
        Spectrum.LR : 'LA',
        Spectrum.SM : 'SM',
        Spectrum.LM : 'LM',
    }

    def __init__(self, params: EigenParams, operator, space: Optional[VectorSpace] = None, **kwargs):
        super().__init__(params, operator, space, **kwargs)
        if self.space.backend != 'numpy':
            raise ConfigurationError("The ARPACK backend requires the numpy vector backend")
        if self.space.comm.size > 1:
            raise ConfigurationError("The ARPACK backend does not support distributed vector spaces")

        n = self.space.dim
        if params.n_conv >= n:
            raise ConfigurationError(f"ARPACK requires n_conv < n, got n_conv={params.n_conv}, n={n}")
        self.which  = 'LA' if params.use_poly_acc else self.WHICH[params.spectrum]
        self.ncv    = int(min(n, max(params.n_kr, params.n_conv + 1)))
        self.krylov_steps = 0

    def _linear_operator(self) -> LinearOperator:
        n       = self.space.dim
        apply   = self.cheby_op if self.params.use_poly_acc else self.mat_vec

        def matvec(x):
            self.krylov_steps += 1
            return np.asarray(apply(self.space.asarray(x)))

        return LinearOperator((n, n), matvec=matvec, dtype=self.space.dtype)

    def solve(self, v0=None) -> EigenResult:
        """
        Run `eigsh`. A partial ARPACK result (no convergence within
        `max_restarts`) is returned with `converged=False`.
        """
        p = self.params
        self.timers.reset()
        self.krylov_steps = 0

        with self.timers("total"):
            if v0 is None:
                v0 = self.space.to_numpy(self.space.random(self.rng))
            converged = True
            try:
                with self.timers("eigen"):
                    _, evecs = eigsh(self._linear_operator(), k=p.n_conv, which=self.which, tol=p.tol,
                                    maxiter=p.max_restarts, ncv=self.ncv, v0=np.asarray(v0, dtype=self.space.dtype))
            except ArpackNoConvergence as e:
                converged   = False
                evecs       = e.eigenvectors
                self.logger.warning(f"ARPACK returned {evecs.shape[1]}/{p.n_conv} eigenpairs", lvl=1)

            vectors     = [self.space.asarray(evecs[:, i]) for i in range(evecs.shape[1])]
            evals, res  = self.compute_evals(vectors)
            # eigenvalues of the plain operator, ordered like the spectrum asks
            descending  = p.spectrum.largest if p.reverse is None else p.reverse
            order       = np.argsort(-self._key(evals) if descending else self._key(evals), kind='stable')
            vectors     = [vectors[i] for i in order]
            evals, res  = evals[order], res[order]

            sigma, companions = None, None
            if p.compute_svd and vectors:
                sigma, companions = self.compute_svd(vectors, evals)
                companions        = self.space.stack(companions)
            if p.vec_outfile and vectors:
                self.save_vectors(vectors, p.vec_outfile, np.real(evals))

        result = EigenResult(
            eigenvalues         = np.real(evals),
            eigenvectors        = self.space.stack(vectors),
            iterations          = self.krylov_steps,
            converged           = converged,
            residual_norms      = res,
            num_converged       = len(vectors),
            singular_values     = sigma,
            singular_vectors    = companions,
        )
        if self.verbose:
            self.log_timings()
        if not converged and p.require_convergence:
            raise ConvergenceExhaustion(f"ARPACK did not converge: {len(vectors)}/{p.n_conv} eigenpairs", result)
        return result

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
