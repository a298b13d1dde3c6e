'''
General tests for import behavior of the krylov_eigsolve package.

Ensures that submodules are lazily imported and key exports are available.

Tests:
- Lazy loading of subpackages
- Key class/function exports
- Package metadata presence

File        : tests/test_imports.py
License     : MIT
'''

import importlib
import sys
import types

import pytest

# -------------------------------------------------------------------

def test_root_imports_lazy():
    import krylov_eigsolve as ke
    algebra = ke.algebra
    assert isinstance(algebra, types.ModuleType)
    assert ke.eigen is importlib.import_module("krylov_eigsolve.algebra.eigen")

# -------------------------------------------------------------------

def test_eigen_exports():
    from krylov_eigsolve.algebra import eigen
    for name in eigen.__all__:
        assert getattr(eigen, name) is not None
    with pytest.raises(AttributeError):
        eigen.LanczosEigensolver

def test_algebra_exports():
    import krylov_eigsolve.algebra as algebra
    assert algebra.VectorSpace.__name__ == "VectorSpace"
    assert callable(algebra.as_operator)
    assert callable(algebra.get_logger)
    assert isinstance(algebra.eigen, types.ModuleType)

def test_common_exports():
    from krylov_eigsolve import common
    assert common.Timer.__name__ == "Timer"
    assert common.HDF5VectorStore.__name__ == "HDF5VectorStore"
    with pytest.raises(AttributeError):
        common.NotThere

# -------------------------------------------------------------------

def test_lazy_cache():
    eigen       = importlib.import_module("krylov_eigsolve.algebra.eigen")
    solver_cls  = eigen.ThickRestartLanczos
    assert eigen._LAZY_CACHE["ThickRestartLanczos"] is solver_cls
    assert solver_cls.__module__ == "krylov_eigsolve.algebra.eigen.trlm"
    assert "krylov_eigsolve.algebra.eigen.trlm" in sys.modules

# -------------------------------------------------------------------

def test_package_metadata():
    import krylov_eigsolve as ke
    assert hasattr(ke, "__version__")
    assert "algebra" in ke.list_available_modules()
    assert ke.get_module_description("nothing") == "Module not found."

# -------------------------------------------------------------------
#! End of file
# -------------------------------------------------------------------
