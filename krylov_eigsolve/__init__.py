# krylov_eigsolve/__init__.py

"""
Krylov Eigensolvers - thick-restart Lanczos for large sparse operators.

This package computes a requested subset of eigenpairs (or singular triplets)
of a large, sparse linear operator that is only available through its action
on vectors. The central algorithm is the Thick-Restart Lanczos method (TRLM)
with locking, optional Chebyshev polynomial acceleration and an SVD mode built
on the normal operator.

Modules:
--------
- algebra   : Vector spaces, operator adapters, random contexts and the eigensolvers
- common    : Logging, timing and HDF5 checkpoint utilities

Examples:
---------
>>> import numpy as np
>>> from krylov_eigsolve.algebra.eigen import EigenParams, choose_eigensolver
>>> A       = np.diag(np.arange(1.0, 201.0))
>>> params  = EigenParams(n_ev=8, n_kr=24, n_conv=4, tol=1e-10, spectrum='SR')
>>> result  = choose_eigensolver('trlm', A=A, params=params)
>>> result.eigenvalues
array([1., 2., 3., 4.])

File    : krylov_eigsolve/__init__.py
Version : 0.1.0
License : MIT
"""

import importlib

# Package metadata
__version__         = "0.1.0"
__license__         = "MIT"

MODULE_DESCRIPTION  = "Thick-restart Lanczos eigensolver with locking, Chebyshev acceleration and SVD mode."

# List of available modules (not imported by default)
__all__             = ["algebra", "common", "eigen"]

def get_module_description(module_name):
    """
    Get the description of a specific module in the krylov_eigsolve package.

    Parameters
    ----------
    module_name : str
        The name of the module.

    Returns
    -------
    str
        The description of the module.
    """
    descriptions = {
        "algebra"   : "Vector spaces, operator adapters, random contexts and Krylov eigensolvers.",
        "common"    : "Logging, timing and HDF5 checkpoint utilities.",
        "eigen"     : "Alias for algebra.eigen: TRLM, ARPACK backend, factory and result types.",
    }
    return descriptions.get(module_name, "Module not found.")

def list_available_modules():
    """
    List all available modules in the krylov_eigsolve package.
    """
    return __all__

# Lazy import subpackages on attribute access (PEP 562)
def __getattr__(name):  # pragma: no cover - simple indirection
    if name == "eigen":
        return importlib.import_module(".algebra.eigen", __name__)
    if name in __all__:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

def __dir__():  # pragma: no cover
    return sorted(list(globals().keys()) + __all__)

# ---------------------------------------------------------------------
#! EOF
# ---------------------------------------------------------------------
