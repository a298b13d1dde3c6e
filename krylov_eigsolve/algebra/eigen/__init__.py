"""
Eigenvalue Solvers Module

Restarted Krylov eigensolvers for large sparse Hermitian operators that are
only available through their action on vectors.

Available Solvers:
    - ThickRestartLanczos: Thick-restart Lanczos with locking, Chebyshev
      acceleration, breakdown recovery and SVD mode
    - ArpackEigensolver: SciPy eigsh backend with the same configuration

Factory Function:
    - choose_eigensolver: Unified interface, builds the operator and solves
    - make_eigensolver: Instantiate a solver without running it
    - decide_method: Automatically choose method based on problem characteristics

Configuration and Results:
    - EigenParams, Spectrum: Validated solver configuration
    - EigenResult: Standardized return type (eigenvalues, eigenvectors, residuals, converged)
    - ArrowMatrix, ConvergenceState: Internals of the restarted iteration

This module uses lazy imports to minimize startup overhead.

-----------------------------------------------------------
Version         : 0.1
-----------------------------------------------------------
"""

from typing import TYPE_CHECKING
import importlib

# -----------------------------------------------------------------------------------------------
# Lazy Import Configuration
# -----------------------------------------------------------------------------------------------

_LAZY_IMPORTS = {
    # Solvers
    'EigenSolver'                   : ('.solver', 'EigenSolver'),
    'ThickRestartLanczos'           : ('.trlm', 'ThickRestartLanczos'),
    'ArpackEigensolver'             : ('.arpack', 'ArpackEigensolver'),
    # Factory interface
    'choose_eigensolver'            : ('.factory', 'choose_eigensolver'),
    'make_eigensolver'              : ('.factory', 'make_eigensolver'),
    'decide_method'                 : ('.factory', 'decide_method'),
    # Configuration
    'EigenParams'                   : ('.params', 'EigenParams'),
    'Spectrum'                      : ('.params', 'Spectrum'),
    # Result and state
    'EigenResult'                   : ('.result', 'EigenResult'),
    'ConvergenceState'              : ('.result', 'ConvergenceState'),
    'ArrowMatrix'                   : ('.arrow', 'ArrowMatrix'),
    # Errors
    'EigenSolverError'              : ('.errors', 'EigenSolverError'),
    'ConfigurationError'            : ('.errors', 'ConfigurationError'),
    'KrylovBreakdown'               : ('.errors', 'KrylovBreakdown'),
    'NumericalDegeneracy'           : ('.errors', 'NumericalDegeneracy'),
    'DomainError'                   : ('.errors', 'DomainError'),
    'ValidationError'               : ('.errors', 'ValidationError'),
    'ConvergenceExhaustion'         : ('.errors', 'ConvergenceExhaustion'),
}

_LAZY_CACHE = {}

# For type checking only
if TYPE_CHECKING:
    from .solver        import EigenSolver
    from .trlm          import ThickRestartLanczos
    from .arpack        import ArpackEigensolver
    from .factory       import choose_eigensolver, make_eigensolver, decide_method
    from .params        import EigenParams, Spectrum
    from .result        import EigenResult, ConvergenceState
    from .arrow         import ArrowMatrix
    from .errors        import (EigenSolverError, ConfigurationError, KrylovBreakdown, NumericalDegeneracy,
                                DomainError, ValidationError, ConvergenceExhaustion)

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
    result                  = getattr(module, attr_name)
    _LAZY_CACHE[name]       = result
    return result

__all__ = list(_LAZY_IMPORTS.keys())

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
