#krylov_eigsolve/algebra/ran_wrapper.py

'''
Explicit random number contexts.

The eigensolvers never touch a global random state: whoever needs a
reproducible starting vector (initial Lanczos vector, replacement vector
after a Krylov breakdown, fallback after a failed checkpoint load) is handed
a `RandomContext`. Vectors are always drawn with NumPy so that the NumPy and
JAX backends produce identical starting points for the same seed.
'''

from typing import Optional

import numpy as np
import numpy.random as npr

from .utils import PY_GLOBAL_SEED

###############################################################################
#! Random context
###############################################################################

class RandomContext:
    """
    Seeded random generator handed to the components that need one.

    Parameters
    ----------
        seed:
            Seed of the underlying `numpy.random.Generator`. None takes the
            process default (PY_GLOBAL_SEED).
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed   = PY_GLOBAL_SEED if seed is None else int(seed)
        self.rng    = npr.default_rng(self.seed)

    def __repr__(self) -> str:
        return f"RandomContext(seed={self.seed})"

    # -----------------------------------------------------------------------------

    def normal(self, n: int, dtype=np.float64) -> np.ndarray:
        """
        Gaussian vector of length `n`; complex dtypes get independent real and
        imaginary parts.
        """
        if np.issubdtype(np.dtype(dtype), np.complexfloating):
            return (self.rng.standard_normal(n) + 1j * self.rng.standard_normal(n)).astype(dtype)
        return self.rng.standard_normal(n).astype(dtype)

    def spawn(self) -> "RandomContext":
        """
        Independent child context, deterministic given this one.
        """
        return RandomContext(int(self.rng.integers(0, 2**31 - 1)))

# -----------------------------------------------------------------------------

def initialize(seed: Optional[int] = None) -> RandomContext:
    '''
    Create a random context with a given seed.

    Parameters:
        seed : int (optional)
            The seed to use for the random number generator.

    Returns:
        RandomContext
    '''
    return RandomContext(seed)

###############################################################################
#! EOF
###############################################################################
