"""
Common utilities shared by the eigensolvers.

**Logging and Monitoring:**
- Console/file logger with indentation levels and colours (`Logger`, `get_global_logger`)
- Tabular timing summaries (`log_timing_summary`)
- High-resolution timers used for solver profiling (`Timer`, `TimerSet`)

**Persistence:**
- HDF5 reading/writing helpers (`HDF5Handler`)
- Eigenvector checkpoint store (`HDF5VectorStore`)

Example:
    >>> from krylov_eigsolve.common import get_global_logger, Timer
    >>> logger = get_global_logger()
    >>> with Timer("block") as t:
    ...     pass
"""

import  importlib
from    typing import TYPE_CHECKING

# For static type checking (IDE support) without runtime import
if TYPE_CHECKING:
    from .flog          import Logger, get_global_logger, log_timing_summary
    from .timer         import Timer, TimerSet
    from .hdf5_lib      import HDF5Handler, HDF5VectorStore, VectorStore

# Lazy loading registry
_LAZY_IMPORTS = {
    # logging
    'Logger'                    : ('.flog', 'Logger'),
    'get_global_logger'         : ('.flog', 'get_global_logger'),
    'log_timing_summary'        : ('.flog', 'log_timing_summary'),
    # timing
    'Timer'                     : ('.timer', 'Timer'),
    'TimerSet'                  : ('.timer', 'TimerSet'),
    # hdf5
    'HDF5Handler'               : ('.hdf5_lib', 'HDF5Handler'),
    'HDF5VectorStore'           : ('.hdf5_lib', 'HDF5VectorStore'),
    'VectorStore'               : ('.hdf5_lib', 'VectorStore'),
}

# Cache for loaded modules
_LOADED = {}

def __getattr__(name: str):
    """
    Module-level __getattr__ for lazy imports.
    """
    if name in _LOADED:
        return _LOADED[name]

    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_path, attr_name  = _LAZY_IMPORTS[name]
    module                  = importlib.import_module(module_path, package=__name__)
    result                  = module if attr_name is None else getattr(module, attr_name)
    _LOADED[name]           = result
    return result

__all__ = list(_LAZY_IMPORTS.keys())

# ---------------------------------------------------------------------
#! EOF
# ---------------------------------------------------------------------
