"""
Linear algebra layer of the Krylov eigensolvers.

Key functionalities provided include:
    - Distributed vector spaces with collective reductions (`VectorSpace`).
    - Operator adapters for dense, sparse and matrix-free operators.
    - Explicit random contexts for reproducible starting vectors.
    - The eigensolvers themselves (subpackage `eigen`).

This module uses lazy imports to minimize startup overhead.

# -----------------------------------------------------------------------------------------------
Version         : 0.1
Description     : Algebra Module with Lazy Imports
# -----------------------------------------------------------------------------------------------
"""

from typing import TYPE_CHECKING
import importlib

# -----------------------------------------------------------------------------------------------
# Lazy Import Configuration
# -----------------------------------------------------------------------------------------------

_LAZY_IMPORTS = {
    # vector spaces
    'VectorSpace'           : ('.vectors', 'VectorSpace'),
    'VectorPool'            : ('.vectors', 'VectorPool'),
    'SerialCommunicator'    : ('.vectors', 'SerialCommunicator'),
    'MPICommunicator'       : ('.vectors', 'MPICommunicator'),
    # operators
    'OperatorAdapter'       : ('.operators', 'OperatorAdapter'),
    'MatrixOperator'        : ('.operators', 'MatrixOperator'),
    'FunctionOperator'      : ('.operators', 'FunctionOperator'),
    'OperatorMode'          : ('.operators', 'OperatorMode'),
    'as_operator'           : ('.operators', 'as_operator'),
    # random
    'RandomContext'         : ('.ran_wrapper', 'RandomContext'),
    # utils
    'get_backend'           : ('.utils', 'get_backend'),
    'JAX_AVAILABLE'         : ('.utils', 'JAX_AVAILABLE'),
    # subpackages
    'eigen'                 : ('.eigen', None),
    'get_logger'            : ('..common.flog', 'get_global_logger'),
}

_LAZY_CACHE = {}

if TYPE_CHECKING:
    from .vectors       import VectorSpace, VectorPool, SerialCommunicator, MPICommunicator
    from .operators     import OperatorAdapter, MatrixOperator, FunctionOperator, OperatorMode, as_operator
    from .ran_wrapper   import RandomContext
    from .utils         import get_backend, JAX_AVAILABLE
    from .              import eigen

# -----------------------------------------------------------------------------------------------

def __getattr__(name: str):
    """
    Module-level __getattr__ for lazy imports.
    """
    if name in _LAZY_CACHE:
        return _LAZY_CACHE[name]

    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_path, attr_name  = _LAZY_IMPORTS[name]
    module                  = importlib.import_module(module_path, package=__name__)
    result                  = module if attr_name is None else getattr(module, attr_name)
    _LAZY_CACHE[name]       = result
    return result

__all__ = list(_LAZY_IMPORTS.keys())

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
