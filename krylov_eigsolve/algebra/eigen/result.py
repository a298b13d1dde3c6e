"""
Eigenvalue Solver Result Types

Standardized result containers for eigenvalue computations and the
bookkeeping state of the restarted Krylov iteration.
"""

from dataclasses import dataclass
from typing import Optional, NamedTuple

from numpy.typing import NDArray

# ---------------------------------------------------------------------------------

class EigenResult(NamedTuple):
    r"""
    Standardized result from eigenvalue solvers.

    Attributes:
        eigenvalues:
            Computed eigenvalues, in the requested order
        eigenvectors:
            Corresponding eigenvectors as columns
        subspacevectors:
            Basis vectors of the final Krylov subspace (for iterative methods)
        iterations:
            Number of Krylov steps, i.e. applications of the iteration operator
            (the Chebyshev polynomial under acceleration). Plain operator
            applications are counted by `EigenSolver.timings()["matvecs"]`
        converged:
            Whether the requested number of eigenpairs converged. False marks
            an incomplete, best-effort result
        residual_norms:
            Residual norms ||A v - \lambda v|| for each eigenpair
        num_converged:
            Number of converged eigenpairs contained in the result
        restarts:
            Number of thick restarts performed
        singular_values:
            Singular values of M in SVD mode
        singular_vectors:
            Companion singular vectors (left when the eigenvectors are the right
            ones, and vice versa) as columns, in SVD mode
    """
    eigenvalues         : NDArray
    eigenvectors        : NDArray
    subspacevectors     : Optional[NDArray] = None
    iterations          : Optional[int]     = None
    converged           : bool              = True
    residual_norms      : Optional[NDArray] = None
    num_converged       : Optional[int]     = None
    restarts            : Optional[int]     = None
    singular_values     : Optional[NDArray] = None
    singular_vectors    : Optional[NDArray] = None

    @property
    def incomplete(self) -> bool:
        return not self.converged

    def __repr__(self):
        n_eigs      = len(self.eigenvalues) if self.eigenvalues is not None else 0
        iter_str    = f"{self.iterations}" if self.iterations is not None else "N/A"
        return (f"EigenResult(n_eigenvalues={n_eigs}, "
                f"converged={self.converged}, iterations={iter_str}, restarts={self.restarts})")

    def __str__(self):
        return f'converged={self.converged}, num_converged={self.num_converged}, iterations={self.iterations}'

# ---------------------------------------------------------------------------------

@dataclass
class ConvergenceState:
    """
    Iteration bookkeeping of the thick-restart Lanczos method.

    Counters prefixed `iter_` refer to the active (unlocked) block and are
    reset at every restart; the `num_` counters are absolute positions in the
    Krylov space.
    """
    iter            : int   = 0
    iter_converged  : int   = 0
    iter_locked     : int   = 0
    iter_keep       : int   = 0
    num_converged   : int   = 0
    num_locked      : int   = 0
    num_keep        : int   = 0
    restart_iter    : int   = 0
    breakdowns      : int   = 0
    converged       : bool  = False
    exhausted       : bool  = False

    def reset(self) -> None:
        self.iter           = 0
        self.iter_converged = 0
        self.iter_locked    = 0
        self.iter_keep      = 0
        self.num_converged  = 0
        self.num_locked     = 0
        self.num_keep       = 0
        self.restart_iter   = 0
        self.breakdowns     = 0
        self.converged      = False
        self.exhausted      = False

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
