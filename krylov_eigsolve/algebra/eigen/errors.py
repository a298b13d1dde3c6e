"""
Eigensolver Exceptions

| Exception               | Raised when                                             | Escapes solve()? |
|-------------------------|---------------------------------------------------------|------------------|
| ConfigurationError      | inconsistent parameters, unsupported spectrum           | yes, immediately |
| KrylovBreakdown         | the Lanczos residual norm vanishes (invariant subspace) | no, restart      |
| NumericalDegeneracy     | deflation divides by a (near) zero eigenvalue           | only if strict   |
| ValidationError         | a loaded checkpoint fails the residual check            | only if strict   |
| ConvergenceExhaustion   | max_restarts reached before n_conv pairs converged      | only if required |
"""

class EigenSolverError(Exception):
    """Base class of all eigensolver errors."""

class ConfigurationError(EigenSolverError, ValueError):
    """Invalid or unsupported solver configuration."""

class KrylovBreakdown(EigenSolverError):
    """
    The Lanczos residual vanished at step `index`: the current Krylov space is
    an invariant subspace of the operator.
    """

    def __init__(self, index: int, beta: float):
        super().__init__(f"Krylov breakdown at step {index} (beta={beta:.3e})")
        self.index  = index
        self.beta   = beta

class NumericalDegeneracy(EigenSolverError, ArithmeticError):
    """A (near) zero eigenvalue was met where its inverse is needed."""

DomainError = NumericalDegeneracy

class ValidationError(EigenSolverError):
    """A loaded eigenpair does not satisfy the residual tolerance."""

class ConvergenceExhaustion(EigenSolverError):
    """
    The restart budget was exhausted. Carries the best-effort result.
    """

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
