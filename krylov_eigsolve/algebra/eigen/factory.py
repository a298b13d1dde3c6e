"""
Unified Eigenvalue Solver Interface

Factory functions choosing between the thick-restart Lanczos solver and the
ARPACK backend. Both consume the same `EigenParams` and return the same
`EigenResult`.

----------------------------------------------
File        : krylov_eigsolve/algebra/eigen/factory.py
----------------------------------------------
"""

from typing import Callable, Literal, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .arpack import ArpackEigensolver
from .errors import ConfigurationError
from .params import EigenParams
from .result import EigenResult
from .solver import EigenSolver
from .trlm import ThickRestartLanczos
from ..operators import as_operator
from ..vectors import VectorSpace

# ----------------------------------------------------------------------------------------

METHODS = ('trlm', 'arpack', 'auto')

def decide_method(n             : int,
                k               : Optional[int] = None,
                backend         : str           = 'numpy',
                distributed     : bool          = False,
                use_poly_acc    : bool          = False) -> str:
    """
    Decide which eigensolver to use based on problem characteristics.

    Parameters:
    -----------
        n:
            (Global) dimension of the operator.
        k:
            Number of wanted eigenpairs.
        backend:
            Array backend of the vector space.
        distributed:
            Whether vectors are distributed over several processes.
        use_poly_acc:
            Chebyshev acceleration requested.

    Returns:
        'arpack' for small serial NumPy problems, 'trlm' otherwise.

    Example:
        >>> decide_method(n=1000, k=4)
        'arpack'
        >>> decide_method(n=10**6, k=4, distributed=True)
        'trlm'
    """
    if distributed or backend != 'numpy':
        return 'trlm'
    if k is not None and k >= n:
        return 'trlm'
    if use_poly_acc:
        # TRLM extends the space with the filtered operator and locks converged pairs
        return 'trlm'
    return 'arpack' if n <= 5000 else 'trlm'

def make_eigensolver(method     : Literal['trlm', 'arpack', 'auto'],
                    params      : EigenParams,
                    operator,
                    space       : Optional[VectorSpace] = None,
                    **kwargs) -> EigenSolver:
    """
    Instantiate a solver without running it.

    Raises
    ------
        ConfigurationError:
            On an unknown method name.
    """
    method = str(method).lower()
    if method not in METHODS:
        raise ConfigurationError(f"Unknown method: {method}. Choose from: {', '.join(METHODS)}")

    operator = as_operator(operator)
    if method == 'auto':
        dim     = space.global_dim if space is not None else operator.dim
        method  = decide_method(dim, params.n_conv,
                            backend     = space.backend if space is not None else 'numpy',
                            distributed = space is not None and space.comm.size > 1,
                            use_poly_acc= params.use_poly_acc)

    if method == 'arpack':
        return ArpackEigensolver(params, operator, space, **kwargs)
    return ThickRestartLanczos(params, operator, space, **kwargs)

def choose_eigensolver(
        method          : Literal['trlm', 'arpack', 'auto']         = 'trlm',
        A               : Optional[NDArray]                         = None,
        matvec          : Optional[Callable[[NDArray], NDArray]]    = None,
        n               : Optional[int]                             = None,
        params          : Optional[EigenParams]                     = None,
        *,
        space           : Optional[VectorSpace]                     = None,
        v0              : Optional[NDArray]                         = None,
        hermitian       : Optional[bool]                            = None,
        rmatvec         : Optional[Callable[[NDArray], NDArray]]    = None,
        dtype           : Optional[np.dtype]                        = None,
        spectral_bounds : Optional[Tuple[float, float]]             = None,
        **kwargs) -> EigenResult:
    r"""
    Unified interface: wrap the operator, build the solver and solve.

    Parameters:
    -----------
        method:
            - 'trlm'    : Thick-restart Lanczos (native, distributed, JAX capable)
            - 'arpack'  : SciPy eigsh (serial NumPy)
            - 'auto'    : `decide_method`
        A:
            Matrix (dense or scipy.sparse); optional if matvec is given.
        matvec:
            Matrix-free product x -> A x (requires n).
        n:
            Dimension when using matvec.
        params:
            `EigenParams`; when None they are built from the remaining keyword
            arguments that name `EigenParams` fields (n_ev, n_kr, n_conv, tol,
            spectrum, ...).
        **kwargs:
            Solver options (rng, store, logger, verbose) and EigenParams fields.

    Returns:
        EigenResult

    Examples:
        >>> A       = scipy.sparse.diags(np.arange(1.0, 1001.0))
        >>> result  = choose_eigensolver('trlm', A, n_ev=8, n_kr=24, n_conv=4, spectrum='SR')
        >>> result.eigenvalues
        array([1., 2., 3., 4.])

        >>> result  = choose_eigensolver('arpack', matvec=lambda x: A @ x, n=1000, params=params)
    """
    if A is None and matvec is None:
        raise ValueError("Must provide either matrix A or matvec function")

    field_names     = EigenParams.__dataclass_fields__.keys()
    param_kwargs    = {k: kwargs.pop(k) for k in list(kwargs) if k in field_names}
    if params is None:
        params = EigenParams(**param_kwargs)
    elif param_kwargs:
        params = params.replace(**param_kwargs)

    op_kwargs = {'spectral_bounds': spectral_bounds}
    if A is not None:
        op_kwargs['hermitian'] = hermitian
        operator = as_operator(A, **op_kwargs)
    else:
        if n is None:
            raise ValueError("Must provide dimension n when using matvec without A")
        operator = as_operator(matvec=matvec, n=n,
                            dtype       = dtype if dtype is not None else np.float64,
                            hermitian   = True if hermitian is None else hermitian,
                            rmatvec     = rmatvec,
                            **op_kwargs)

    if space is None and dtype is not None:
        space = VectorSpace(operator.dim, np.result_type(dtype, operator.dtype))

    solver = make_eigensolver(method, params, operator, space, **kwargs)
    return solver.solve(v0=v0)

# ----------------------------------------------------------------------------------------
#! End of File
# ----------------------------------------------------------------------------------------
