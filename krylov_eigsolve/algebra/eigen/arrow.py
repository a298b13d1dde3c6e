r"""
Arrow Matrix of the Thick-Restart Lanczos Method

Between restarts the Lanczos recurrence condenses the operator into a real
symmetric tridiagonal matrix
$$
T = \mathrm{tridiag}(\beta_{j-1}, \alpha_j, \beta_j).
$$
After a thick restart the first $k$ active basis vectors are Ritz vectors
$y_i$ with Ritz values $\theta_i$; the residual of every one of them points
along the same vector $v_{k}$, so the projected matrix becomes
$$
A =
\begin{pmatrix}
\theta_0 &        &              & \beta_0   &            \\
         & \ddots &              & \vdots    &            \\
         &        & \theta_{k-1} & \beta_{k-1} &          \\
\beta_0  & \cdots & \beta_{k-1}  & \alpha_k  & \beta_k    \\
         &        &              & \beta_k   & \ddots
\end{pmatrix},
$$
an arrow (diagonal block plus one coupling row/column) followed by the usual
tridiagonal tail. `ArrowMatrix` stores the coefficients in two fixed
capacity arrays `alpha`, `beta` and builds the dense active block on demand.

Locked vectors (indices below `num_locked`) are decoupled and excluded from
the active block.

----------------------------------------------
File        : krylov_eigsolve/algebra/eigen/arrow.py
----------------------------------------------
"""

from typing import Tuple

import numpy as np
import scipy.linalg
from numpy.typing import NDArray

# ----------------------------------------------------------------------------------------

class ArrowMatrix:
    """
    Fixed-capacity coefficient storage of the arrow/tridiagonal matrix.

    Parameters:
    -----------
        capacity:
            Maximal number of Lanczos coefficients (n_kr).

    Attributes:
    -----------
        alpha:
            Diagonal entries. Below `num_keep` these are Ritz values.
        beta:
            Off-diagonal entries. Below `num_keep` these are the arrow couplings,
            from `num_keep` on the tridiagonal couplings, `beta[size-1]` is the
            norm of the current residual vector.
        size:
            Number of valid diagonal entries (logical size <= capacity).
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity   = int(capacity)
        self.alpha      = np.zeros(self.capacity, dtype=np.float64)
        self.beta       = np.zeros(self.capacity, dtype=np.float64)
        self.size       = 0

    def reset(self) -> None:
        self.alpha[:]   = 0.0
        self.beta[:]    = 0.0
        self.size       = 0

    def __repr__(self) -> str:
        return f"ArrowMatrix(size={self.size}, capacity={self.capacity})"

    # ------------------------------------------------------------------------------------

    def _check(self, num_locked: int, arrow_pos: int, size: int) -> int:
        if not (0 <= num_locked < size <= self.capacity):
            raise ValueError(f"Invalid active block [{num_locked}, {size}) for capacity {self.capacity}")
        dim = size - num_locked
        if not (0 <= arrow_pos < dim):
            raise ValueError(f"Arrow position {arrow_pos} outside the active block of size {dim}")
        return dim

    def dense(self, num_locked: int, arrow_pos: int, size: int) -> NDArray:
        """
        Dense active block A[num_locked:size, num_locked:size].

        Parameters:
        -----------
            num_locked:
                Number of locked (excluded) leading entries.
            arrow_pos:
                Local index of the arrow row/column (num_keep - num_locked).
            size:
                Logical size of the Krylov factorisation.
        """
        dim = self._check(num_locked, arrow_pos, size)
        A   = np.diag(self.alpha[num_locked:size]).astype(np.float64)

        # arrow: coupling of the kept Ritz vectors with the restart vector
        for i in range(arrow_pos):
            A[i, arrow_pos] = self.beta[num_locked + i]
            A[arrow_pos, i] = self.beta[num_locked + i]
        # tridiagonal tail
        for i in range(arrow_pos, dim - 1):
            A[i, i + 1]     = self.beta[num_locked + i]
            A[i + 1, i]     = self.beta[num_locked + i]
        return A

    def eigensolve(self, num_locked: int, arrow_pos: int, size: int) -> Tuple[NDArray, NDArray]:
        """
        Eigen-decomposition of the active block.

        Returns ascending eigenvalues and the orthonormal eigenvectors as
        columns. Without an arrow (arrow_pos <= 1) the block is tridiagonal and
        `scipy.linalg.eigh_tridiagonal` is used.
        """
        dim = self._check(num_locked, arrow_pos, size)
        if dim == 1:
            return self.alpha[num_locked:size].copy(), np.ones((1, 1))

        if arrow_pos <= 1:
            d = self.alpha[num_locked:size]
            e = self.beta[num_locked:size - 1]
            try:
                return scipy.linalg.eigh_tridiagonal(d, e)
            except scipy.linalg.LinAlgError:
                # stemr occasionally fails on clustered spectra
                return scipy.linalg.eigh(self.dense(num_locked, arrow_pos, size))
        return scipy.linalg.eigh(self.dense(num_locked, arrow_pos, size))

    def residuals(self, ritz_vectors: NDArray, size: int) -> NDArray:
        r"""
        Residual estimates $|\beta_{size-1} y_{last, i}|$ of the Ritz pairs.
        """
        return np.abs(self.beta[size - 1] * ritz_vectors[-1, :])

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
