r"""
Vector Space Primitives

Distributed vector spaces consumed by the Krylov eigensolvers.

A `VectorSpace` knows the local length of a vector, its dtype and the array
backend (NumPy or JAX), and routes every global reduction through a
`Communicator`. Each inner product, norm or block inner product issues
exactly one collective `allreduce`; local operations (axpy, scaling,
rotations of a vector set by a small dense matrix) never communicate.

Operations are written functionally, i.e. they return new arrays rather than
modifying their arguments, which keeps the NumPy and JAX code paths identical.

Communicators:
    - SerialCommunicator    : single process, allreduce is the identity
    - MPICommunicator       : mpi4py based, sums over a communicator

----------------------------------------------
File        : krylov_eigsolve/algebra/vectors.py
----------------------------------------------
"""

from contextlib import contextmanager
from typing import Any, Iterator, List, Literal, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from .utils import jnp, normalize_backend
from .ran_wrapper import RandomContext

# ----------------------------------------------------------------------------------------
#! Collective reduction
# ----------------------------------------------------------------------------------------

@runtime_checkable
class Communicator(Protocol):
    """
    Collective reduction capability: sum a scalar or small dense array over
    all cooperating processes, returning the same value to every one.
    """
    rank : int
    size : int

    def allreduce(self, value: Any) -> Any: ...

class SerialCommunicator:
    """
    Single-process communicator. Counts reductions so that tests can verify
    the number of collectives issued per step.
    """

    def __init__(self):
        self.rank       = 0
        self.size       = 1
        self.reductions = 0

    def allreduce(self, value):
        self.reductions += 1
        return value

    def __repr__(self) -> str:
        return "SerialCommunicator()"

class MPICommunicator:
    """
    Communicator summing over an mpi4py communicator (COMM_WORLD by default).

    mpi4py is imported on construction so that serial use never requires it.
    """

    def __init__(self, comm=None):
        from mpi4py import MPI
        self._mpi       = MPI
        self.comm       = MPI.COMM_WORLD if comm is None else comm
        self.rank       = self.comm.Get_rank()
        self.size       = self.comm.Get_size()
        self.reductions = 0

    def allreduce(self, value):
        self.reductions += 1
        if np.isscalar(value) or np.ndim(value) == 0:
            return self.comm.allreduce(value, op=self._mpi.SUM)
        send = np.ascontiguousarray(value)
        recv = np.empty_like(send)
        self.comm.Allreduce(send, recv, op=self._mpi.SUM)
        return recv

    def __repr__(self) -> str:
        return f"MPICommunicator(rank={self.rank}, size={self.size})"

# ----------------------------------------------------------------------------------------
#! Vector space
# ----------------------------------------------------------------------------------------

class VectorSpace:
    r"""
    Vector space of (locally) `dim`-dimensional vectors.

    Parameters:
    -----------
        dim:
            Local vector length on this process.
        dtype:
            Element type (float64 for real symmetric, complex128 for Hermitian problems).
        backend:
            'numpy' or 'jax' (default taken from PY_BACKEND).
        comm:
            Communicator used for global reductions (serial by default).

    Example:
        >>> space = VectorSpace(100, np.float64)
        >>> x     = space.random(RandomContext(1))
        >>> space.norm(space.scale(1.0 / space.norm(x), x))
        1.0
    """

    def __init__(self,
                dim         : int,
                dtype                                           = np.float64,
                backend     : Optional[Literal['numpy', 'jax']] = None,
                comm        : Optional[Communicator]            = None):
        if dim < 1:
            raise ValueError(f"dim must be >= 1, got {dim}")
        self.dim        = int(dim)
        self.dtype      = np.dtype(dtype)
        self.backend    = normalize_backend(backend)
        self.xp         = jnp if self.backend == 'jax' else np
        self.comm       = comm if comm is not None else SerialCommunicator()

    def __repr__(self) -> str:
        return f"VectorSpace(dim={self.dim}, dtype={self.dtype}, backend='{self.backend}', comm={self.comm!r})"

    @property
    def is_complex(self) -> bool:
        return np.issubdtype(self.dtype, np.complexfloating)

    @property
    def global_dim(self) -> int:
        """Total vector length summed over all processes."""
        return int(self.comm.allreduce(self.dim)) if self.comm.size > 1 else self.dim

    # ------------------------------------------------------------------------------------
    #! allocation
    # ------------------------------------------------------------------------------------

    def zeros(self):
        return self.xp.zeros(self.dim, dtype=self.dtype)

    def allocate(self, count: int) -> List:
        """ `count` zero vectors. """
        return [self.zeros() for _ in range(count)]

    def asarray(self, x):
        """ Convert `x` into a backend vector of this space. """
        arr = self.xp.asarray(x).astype(self.dtype).reshape(-1)
        if arr.shape[0] != self.dim:
            raise ValueError(f"Vector of length {arr.shape[0]} does not belong to a space of dimension {self.dim}")
        return arr

    def clone(self, x):
        return self.xp.array(x, dtype=self.dtype, copy=True)

    copy = clone

    def random(self, rng: RandomContext):
        """ Gaussian random vector drawn from `rng`. """
        return self.xp.asarray(rng.normal(self.dim, self.dtype))

    @staticmethod
    def to_numpy(x) -> NDArray:
        return np.asarray(x)

    def stack(self, vectors: Sequence) -> NDArray:
        """ NumPy matrix with `vectors` as columns. """
        if len(vectors) == 0:
            return np.zeros((self.dim, 0), dtype=self.dtype)
        return np.stack([np.asarray(v) for v in vectors], axis=1)

    # ------------------------------------------------------------------------------------
    #! reductions (one collective each)
    # ------------------------------------------------------------------------------------

    def inner_product(self, a, b) -> complex:
        r""" Global $\langle a, b \rangle$ (conjugate-linear in `a`). """
        local = np.asarray(self.xp.vdot(a, b))[()]
        return self.comm.allreduce(local)

    def re_inner_product(self, a, b) -> float:
        return float(np.real(self.inner_product(a, b)))

    def norm2(self, x) -> float:
        local = float(np.real(np.asarray(self.xp.vdot(x, x))))
        return float(self.comm.allreduce(local))

    def norm(self, x) -> float:
        return float(np.sqrt(max(self.norm2(x), 0.0)))

    def block_inner_product(self, set_a: Sequence, set_b) -> NDArray:
        r"""
        All projections $\langle a_i, b_j \rangle$ in a single reduction.

        `set_b` may be a single vector (result has shape (len(set_a),)) or a
        sequence of vectors (result has shape (len(set_a), len(set_b))).
        """
        if len(set_a) == 0:
            return np.zeros(0, dtype=self.dtype)
        A = self.xp.stack(list(set_a), axis=0)
        if isinstance(set_b, (list, tuple)):
            B       = self.xp.stack(list(set_b), axis=1)
            local   = np.asarray(A.conj() @ B)
        else:
            local   = np.asarray(A.conj() @ set_b)
        return np.asarray(self.comm.allreduce(local))

    # ------------------------------------------------------------------------------------
    #! local linear algebra
    # ------------------------------------------------------------------------------------

    def axpy(self, a, x, y):
        """ Returns y + a x. """
        return y + a * x

    def scale(self, a, x):
        return a * x

    def lincomb(self, coeffs, vectors: Sequence):
        r""" $\sum_i c_i v_i$ over the given vectors. """
        if len(vectors) == 0:
            return self.zeros()
        V = self.xp.stack(list(vectors), axis=1)
        return V @ self.xp.asarray(coeffs, dtype=V.dtype)

    def rotate(self, vectors: Sequence, coeffs: NDArray) -> List:
        r"""
        Right-multiply a vector set by a dense matrix: out_j = \sum_i v_i C_{ij}.
        """
        coeffs  = np.asarray(coeffs)
        V       = self.xp.stack(list(vectors), axis=1)
        C       = self.xp.asarray(coeffs.astype(np.result_type(coeffs.dtype, self.dtype)))
        W       = (V @ C).astype(self.dtype)
        return [W[:, j] for j in range(coeffs.shape[1])]

# ----------------------------------------------------------------------------------------
#! Scratch pool
# ----------------------------------------------------------------------------------------

class VectorPool:
    """
    Scratch vectors owned by one solver.

    `acquire(n)` hands out a list of `n` slots; whatever the slots hold when
    the block exits is returned to the pool, also when the block raises.

    Example:
        >>> pool = VectorPool(space)
        >>> with pool.acquire(2) as tmp:
        ...     tmp[0] = op(x)
        >>> pool.outstanding
        0
    """

    def __init__(self, space: VectorSpace):
        self.space          = space
        self._free          = []
        self.outstanding    = 0
        self.peak           = 0

    @contextmanager
    def acquire(self, n: int = 1) -> Iterator[List]:
        slots               = [self._free.pop() if self._free else self.space.zeros() for _ in range(n)]
        self.outstanding   += n
        self.peak           = max(self.peak, self.outstanding)
        try:
            yield slots
        finally:
            self.outstanding -= n
            self._free.extend(slots)

    def clear(self) -> None:
        self._free.clear()

# ----------------------------------------------------------------------------------------
#! EOF
# ----------------------------------------------------------------------------------------
