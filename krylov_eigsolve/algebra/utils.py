# file        :   krylov_eigsolve/algebra/utils.py

'''
Backend detection and environment configuration.

- Detects whether JAX is importable and enables 64-bit precision when it is.
- Reads the process-wide defaults from the environment:
    PY_BACKEND      : default array backend for vector spaces ('numpy' or 'jax')
    PY_GLOBAL_SEED  : default seed for random contexts
- Provides `get_backend` returning the array module for a backend name.
'''

import os
from typing import Optional

import numpy as np

# ---------------------------------------------------------------------
#! Environment variable names
# ---------------------------------------------------------------------

PY_BACKEND_STR          : str               = "PY_BACKEND"
PY_GLOBAL_SEED_STR      : str               = "PY_GLOBAL_SEED"

DEFAULT_SEED            : int               = 42
DEFAULT_NP_FLOAT_TYPE                       = np.float64
DEFAULT_NP_CPX_TYPE                         = np.complex128

# ---------------------------------------------------------------------
#! JAX availability
# ---------------------------------------------------------------------

try:
    import jax
    import jax.numpy as jnp
    from jax import config as jcfg
    jcfg.update("jax_enable_x64", True)
    JAX_AVAILABLE   = True
except ImportError:
    JAX_AVAILABLE   = False
    jax             = None
    jnp             = None
    jcfg            = None

# ---------------------------------------------------------------------
#! SET VARIABLES
# ---------------------------------------------------------------------

def _env_seed() -> int:
    value = os.environ.get(PY_GLOBAL_SEED_STR)
    try:
        return int(value) if value is not None else DEFAULT_SEED
    except ValueError:
        return DEFAULT_SEED

PY_GLOBAL_SEED          : int               = _env_seed()
DEFAULT_BACKEND         : str               = os.environ.get(PY_BACKEND_STR, "numpy").lower()
if DEFAULT_BACKEND not in ("numpy", "np", "jax", "jnp") or (DEFAULT_BACKEND in ("jax", "jnp") and not JAX_AVAILABLE):
    DEFAULT_BACKEND = "numpy"

# ---------------------------------------------------------------------

def normalize_backend(backend: Optional[str]) -> str:
    """
    Map aliases ('np', 'jnp', 'default', None) onto 'numpy' or 'jax'.

    Raises
    ------
        ImportError:
            When 'jax' is requested but JAX is not installed.
        ValueError:
            For an unknown backend name.
    """
    name = DEFAULT_BACKEND if backend in (None, "default") else str(backend).lower()
    if name in ("numpy", "np"):
        return "numpy"
    if name in ("jax", "jnp"):
        if not JAX_AVAILABLE:
            raise ImportError("JAX backend requested but JAX is not installed")
        return "jax"
    raise ValueError(f"Unknown backend '{backend}', expected 'numpy' or 'jax'")

def get_backend(backend: Optional[str] = None):
    """
    Return the array module (numpy or jax.numpy) for a backend name.
    """
    return jnp if normalize_backend(backend) == "jax" else np

# ---------------------------------------------------------------------
#! EOF
# ---------------------------------------------------------------------
