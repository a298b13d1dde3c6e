r"""
Eigensolver Parameters

`EigenParams` is the read-only configuration of a Krylov eigensolve. It is
validated once, on construction, so an inconsistent setup fails before any
vector is allocated.

Spectrum selectors:

| code | meaning                           | Lanczos order | reverse (no poly acc) |
|------|-----------------------------------|---------------|-----------------------|
| SR   | smallest real part                | algebraic     | False                 |
| LR   | largest real part                 | algebraic     | True                  |
| SM   | smallest magnitude                | magnitude     | False                 |
| LM   | largest magnitude                 | magnitude     | True                  |
| SI   | smallest imaginary part           | unsupported by the Hermitian solvers      |
| LI   | largest imaginary part            | unsupported by the Hermitian solvers      |

With Chebyshev acceleration the wanted end of the spectrum is mapped onto
the region where $|T_d| \gg 1$ on the positive side, so the Lanczos iteration
always looks for the largest values of the transformed operator and
`reverse` defaults to True.

----------------------------------------------
File        : krylov_eigsolve/algebra/eigen/params.py
----------------------------------------------
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Dict, Optional, TYPE_CHECKING, Union

import numpy as np

from .errors import ConfigurationError
from ..operators import OperatorMode

if TYPE_CHECKING:
    from ...common.flog import Logger

# ----------------------------------------------------------------------------------------
#! Spectrum
# ----------------------------------------------------------------------------------------

@unique
class Spectrum(Enum):
    SR = "SR"
    LR = "LR"
    SM = "SM"
    LM = "LM"
    SI = "SI"
    LI = "LI"

    @property
    def by_magnitude(self) -> bool:
        return self in (Spectrum.SM, Spectrum.LM)

    @property
    def largest(self) -> bool:
        return self in (Spectrum.LR, Spectrum.LM, Spectrum.LI)

    @property
    def imaginary(self) -> bool:
        return self in (Spectrum.SI, Spectrum.LI)

    @staticmethod
    def parse(value: Union[str, "Spectrum"]) -> "Spectrum":
        """
        Accepts the two-letter codes (any case) and the aliases used by the
        other solvers of the package ('smallest', 'largest', 'SA', 'LA').
        """
        if isinstance(value, Spectrum):
            return value
        aliases = {
            'SMALLEST'  : 'SR',
            'LARGEST'   : 'LR',
            'SA'        : 'SR',
            'LA'        : 'LR',
        }
        key = str(value).upper()
        key = aliases.get(key, key)
        try:
            return Spectrum(key)
        except ValueError:
            raise ConfigurationError(f"Unknown spectrum '{value}', expected one of {[s.value for s in Spectrum]}") from None

# ----------------------------------------------------------------------------------------
#! Parameters
# ----------------------------------------------------------------------------------------

@dataclass(frozen=True)
class EigenParams:
    r"""
    Configuration of a thick-restart Lanczos eigensolve.

    Attributes:
        n_ev:
            Size of the factorisation kept after a restart (initial basis size).
        n_kr:
            Size of the Krylov space after extension, n_kr > n_ev.
        n_conv:
            Number of converged eigenpairs requested, n_conv < n_kr (default n_ev).
            The last wanted pair needs at least one free Krylov vector beside it.
        tol:
            Residual tolerance, relative to the largest Ritz value magnitude.
        spectrum:
            'SR', 'LR', 'SM' or 'LM' (see module docstring).
        reverse:
            Sort Ritz values in descending order. Derived from `spectrum` and
            `use_poly_acc` when None.
        use_poly_acc, poly_deg, a_min, a_max:
            Chebyshev acceleration of the given degree; [a_min, a_max] is the
            interval that is suppressed. Missing bounds are taken from the
            operator's spectral-bounds hint, a missing a_max is estimated by
            power iteration.
        max_restarts:
            Restart budget.
        check_interval:
            Run a convergence check every `check_interval` Lanczos steps during
            the extension; 0 checks only when the Krylov space is full.
        compute_svd, use_norm_op, use_dagger:
            Operator form (M, M^dag, M^dag M, M M^dag) and SVD extraction.
        require_convergence:
            Raise `ConvergenceExhaustion` instead of returning an incomplete result.
        lock_tol:
            Relative residual below which a Ritz pair is locked (default: machine epsilon).
        breakdown_tol:
            Relative threshold on beta flagging a Krylov breakdown.
        reorth_eta:
            DGKS criterion: repeat the orthogonalisation when the norm dropped below eta times its previous value.
        block_orthogonalise:
            Use one block inner product per pass instead of sequential Gram-Schmidt.
        vec_infile, vec_outfile, require_load:
            Checkpoint input/output and whether a failed load is fatal.
        seed:
            Seed of the random starting vector (default PY_GLOBAL_SEED).
    """
    n_ev                : int
    n_kr                : int
    n_conv              : Optional[int]                 = None
    tol                 : float                         = 1e-10
    spectrum            : Union[str, Spectrum]          = Spectrum.SR
    reverse             : Optional[bool]                = None
    use_poly_acc        : bool                          = False
    poly_deg            : int                           = 0
    a_min               : Optional[float]               = None
    a_max               : Optional[float]               = None
    max_restarts        : int                           = 100
    check_interval      : int                           = 0
    compute_svd         : bool                          = False
    use_norm_op         : bool                          = False
    use_dagger          : bool                          = False
    require_convergence : bool                          = False
    lock_tol            : Optional[float]               = None
    breakdown_tol       : float                         = 1e-12
    reorth_eta          : float                         = 1.0 / np.sqrt(2.0)
    block_orthogonalise : bool                          = True
    vec_infile          : Optional[str]                 = None
    vec_outfile         : Optional[str]                 = None
    require_load        : bool                          = False
    seed                : Optional[int]                 = None

    # ------------------------------------------------------------------------------------

    def __post_init__(self):
        spectrum = Spectrum.parse(self.spectrum)
        object.__setattr__(self, 'spectrum', spectrum)
        if self.n_conv is None:
            object.__setattr__(self, 'n_conv', self.n_ev)
        if self.lock_tol is None:
            object.__setattr__(self, 'lock_tol', min(float(np.finfo(np.float64).eps), abs(self.tol)) or float(np.finfo(np.float64).eps))

        if self.n_ev < 1:
            raise ConfigurationError(f"n_ev must be >= 1, got {self.n_ev}")
        if self.n_ev >= self.n_kr:
            raise ConfigurationError(f"n_ev={self.n_ev} must be less than n_kr={self.n_kr}")
        if self.n_conv < 1 or self.n_conv >= self.n_kr:
            raise ConfigurationError(f"n_conv={self.n_conv} must satisfy 1 <= n_conv < n_kr={self.n_kr}")
        if self.tol <= 0.0:
            raise ConfigurationError(f"tol must be positive, got {self.tol}")
        if self.lock_tol <= 0.0 or self.lock_tol > self.tol:
            raise ConfigurationError(f"lock_tol={self.lock_tol} must be in (0, tol={self.tol}]")
        if self.max_restarts < 1:
            raise ConfigurationError(f"max_restarts must be >= 1, got {self.max_restarts}")
        if self.check_interval < 0:
            raise ConfigurationError(f"check_interval must be >= 0, got {self.check_interval}")
        if self.breakdown_tol <= 0.0:
            raise ConfigurationError(f"breakdown_tol must be positive, got {self.breakdown_tol}")
        if not (0.0 < self.reorth_eta <= 1.0):
            raise ConfigurationError(f"reorth_eta must be in (0, 1], got {self.reorth_eta}")

        if spectrum.imaginary:
            raise ConfigurationError(f"Spectrum {spectrum.value} is not supported by a Hermitian solver")
        if self.use_poly_acc:
            if self.poly_deg < 1:
                raise ConfigurationError(f"Polynomial acceleration requires poly_deg >= 1, got {self.poly_deg}")
            if spectrum.by_magnitude:
                raise ConfigurationError(f"Polynomial acceleration cannot target spectrum {spectrum.value}, use SR or LR")
            if self.a_min is not None and self.a_max is not None and self.a_min >= self.a_max:
                raise ConfigurationError(f"Chebyshev bounds require a_min < a_max, got [{self.a_min}, {self.a_max}]")
        if self.compute_svd and not self.use_norm_op:
            raise ConfigurationError("compute_svd requires use_norm_op=True (M^dag M or M M^dag)")
        if self.require_load and not self.vec_infile:
            raise ConfigurationError("require_load=True needs vec_infile")

    # ------------------------------------------------------------------------------------
    #! derived
    # ------------------------------------------------------------------------------------

    @property
    def reverse_order(self) -> bool:
        """ Descending Ritz order during the iteration and in the final reorder. """
        if self.reverse is not None:
            return bool(self.reverse)
        if self.use_poly_acc:
            return True
        return self.spectrum.largest

    @property
    def operator_mode(self) -> OperatorMode:
        return OperatorMode.from_flags(self.use_norm_op, self.use_dagger)

    def replace(self, **changes) -> "EigenParams":
        """ Validated copy with some fields changed. """
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        d               = dataclasses.asdict(self)
        d['spectrum']   = self.spectrum.value
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any], logger: Optional['Logger'] = None) -> "EigenParams":
        """
        Build parameters from a dictionary, ignoring unknown keys.
        """
        known   = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown and logger is not None:
            logger.warning(f"EigenParams: ignoring unknown keys {unknown}")
        return cls(**{k: v for k, v in d.items() if k in known})

    def __str__(self) -> str:
        return (f"EigenParams(n_ev={self.n_ev}, n_kr={self.n_kr}, n_conv={self.n_conv}, tol={self.tol:.1e}, "
                f"spectrum={self.spectrum.value}, poly_acc={self.use_poly_acc}, mode={self.operator_mode.value})")

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
