r"""
Operator Adapters

The eigensolvers see a linear operator only through its action on vectors.
`OperatorAdapter` is that capability: `apply`, `apply_adjoint`, a Hermitian
flag, an optional spectral-bounds hint and performance counters.

Two adapters are provided:
    - MatrixOperator    : dense NumPy arrays or scipy.sparse matrices
    - FunctionOperator  : user callables (matrix-free)

The solver selects the form that is diagonalised with `OperatorMode`:
    $M$, $M^\dagger$, $M^\dagger M$ or $M M^\dagger$.
The last two are Hermitian positive semi-definite for any $M$ and are
the basis of the SVD mode.

----------------------------------------------
File        : krylov_eigsolve/algebra/operators.py
----------------------------------------------
"""

from abc import ABC, abstractmethod
from enum import Enum, unique
from typing import Callable, Optional, Tuple

import numpy as np
import scipy.sparse as sp
from numpy.typing import NDArray

# ----------------------------------------------------------------------------------------
#! Operator modes
# ----------------------------------------------------------------------------------------

@unique
class OperatorMode(Enum):
    """
    Which form of the operator the solver applies.
    """
    M       = "M"
    MDAG    = "Mdag"
    MDAGM   = "MdagM"
    MMDAG   = "MMdag"

    @property
    def is_normal(self) -> bool:
        return self in (OperatorMode.MDAGM, OperatorMode.MMDAG)

    @staticmethod
    def from_flags(use_norm_op: bool, use_dagger: bool) -> "OperatorMode":
        """
        Combine the two configuration flags into a mode:

        | use_norm_op | use_dagger | mode  |
        |-------------|------------|-------|
        | False       | False      | M     |
        | False       | True       | Mdag  |
        | True        | False      | MdagM |
        | True        | True       | MMdag |
        """
        if use_norm_op:
            return OperatorMode.MMDAG if use_dagger else OperatorMode.MDAGM
        return OperatorMode.MDAG if use_dagger else OperatorMode.M

# ----------------------------------------------------------------------------------------
#! Capability
# ----------------------------------------------------------------------------------------

class OperatorAdapter(ABC):
    """
    Linear operator capability consumed by the eigensolvers.

    Implementations must be deterministic and side-effect free apart from the
    `applications` and `flops` counters.
    """

    def __init__(self,
                dim             : int,
                dtype                                       = np.float64,
                hermitian       : bool                      = True,
                spectral_bounds : Optional[Tuple[float, float]] = None):
        self.dim                = int(dim)
        self.dtype              = np.dtype(dtype)
        self.hermitian          = bool(hermitian)
        self.spectral_bounds    = None if spectral_bounds is None else (float(spectral_bounds[0]), float(spectral_bounds[1]))
        self.applications       = 0
        self.flops              = 0

    @abstractmethod
    def _apply(self, x):
        ...

    def _apply_adjoint(self, x):
        if self.hermitian:
            return self._apply(x)
        raise NotImplementedError(f"{type(self).__name__} does not provide the adjoint action")

    @abstractmethod
    def flops_per_apply(self) -> int:
        ...

    # ------------------------------------------------------------------------------------

    def apply(self, x):
        r""" $y = M x$. """
        self.applications  += 1
        self.flops         += self.flops_per_apply()
        return self._apply(x)

    def apply_adjoint(self, x):
        r""" $y = M^\dagger x$. """
        self.applications  += 1
        self.flops         += self.flops_per_apply()
        return self._apply_adjoint(x)

    def reset_counters(self) -> None:
        self.applications   = 0
        self.flops          = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dim={self.dim}, dtype={self.dtype}, hermitian={self.hermitian})"

# ----------------------------------------------------------------------------------------
#! Matrix adapter
# ----------------------------------------------------------------------------------------

class MatrixOperator(OperatorAdapter):
    r"""
    Adapter around an explicit dense or sparse square matrix.

    Parameters:
    -----------
        A:
            NumPy array or scipy.sparse matrix of shape (n, n).
        hermitian:
            Hermitian flag; detected from the matrix when None.
        spectral_bounds:
            Optional (a, b) hint enclosing the unwanted part of the spectrum,
            used by Chebyshev acceleration.

    Example:
        >>> op = MatrixOperator(np.diag([1.0, 2.0, 3.0]))
        >>> op.apply(np.ones(3))
        array([1., 2., 3.])
    """

    def __init__(self,
                A,
                hermitian       : Optional[bool]                = None,
                spectral_bounds : Optional[Tuple[float, float]] = None,
                tol             : float                         = 1e-12):
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise ValueError(f"A must be square, got shape {A.shape}")

        self.A = A if sp.issparse(A) else np.asarray(A)
        if hermitian is None:
            hermitian = MatrixOperator.is_hermitian(self.A, tol)
        super().__init__(A.shape[0], np.result_type(A.dtype, np.float64), hermitian, spectral_bounds)

        nnz         = self.A.nnz if sp.issparse(self.A) else self.A.size
        self._flops = int((8 if np.issubdtype(self.dtype, np.complexfloating) else 2) * nnz)
        self._AH    = None

    @staticmethod
    def is_hermitian(A, tol=1e-12) -> bool:
        """Check if A is symmetric/Hermitian, works for dense and sparse."""
        if sp.issparse(A):
            diff = (A - A.conj().T).tocoo()
            return diff.nnz == 0 or bool(np.all(np.abs(diff.data) < tol))
        return bool(np.allclose(A, A.T.conj(), atol=tol))

    def flops_per_apply(self) -> int:
        return self._flops

    def _apply(self, x):
        return self.A @ x

    def _apply_adjoint(self, x):
        if self.hermitian:
            return self.A @ x
        if self._AH is None:
            self._AH = self.A.conj().T
            if sp.issparse(self._AH):
                self._AH = self._AH.tocsr()
        return self._AH @ x

# ----------------------------------------------------------------------------------------
#! Callable adapter
# ----------------------------------------------------------------------------------------

class FunctionOperator(OperatorAdapter):
    """
    Matrix-free adapter around callables.

    Parameters:
    -----------
        matvec:
            x -> M x
        dim:
            Vector length.
        rmatvec:
            x -> M^dag x; required for non-Hermitian operators used in
            adjoint or normal modes.
        flops:
            Cost of one application reported to the flop counter.
    """

    def __init__(self,
                matvec          : Callable[[NDArray], NDArray],
                dim             : int,
                dtype                                           = np.float64,
                hermitian       : bool                          = True,
                rmatvec         : Optional[Callable[[NDArray], NDArray]] = None,
                spectral_bounds : Optional[Tuple[float, float]] = None,
                flops           : int                           = 0):
        super().__init__(dim, dtype, hermitian, spectral_bounds)
        self._matvec    = matvec
        self._rmatvec   = rmatvec
        self._flops     = int(flops)

    def flops_per_apply(self) -> int:
        return self._flops

    def _apply(self, x):
        return self._matvec(x)

    def _apply_adjoint(self, x):
        if self._rmatvec is not None:
            return self._rmatvec(x)
        return super()._apply_adjoint(x)

# ----------------------------------------------------------------------------------------

def as_operator(A           = None,
                matvec      : Optional[Callable[[NDArray], NDArray]] = None,
                n           : Optional[int] = None,
                **kwargs) -> OperatorAdapter:
    """
    Wrap a matrix, a callable or an existing adapter into an `OperatorAdapter`.

    Raises
    ------
        ValueError:
            When neither `A` nor `matvec` is given, or `n` is missing for a callable.
    """
    if isinstance(A, OperatorAdapter):
        return A
    if A is not None:
        return MatrixOperator(A, **kwargs)
    if matvec is None:
        raise ValueError("Either A or matvec must be provided")
    if n is None:
        raise ValueError("n (dimension) must be provided when using matvec")
    return FunctionOperator(matvec, n, **kwargs)

# ----------------------------------------------------------------------------------------
#! EOF
# ----------------------------------------------------------------------------------------
