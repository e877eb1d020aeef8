"""Exceptions raised by the Jacobi solvers."""


class JacobiError(Exception):
    """Base class for all solver errors."""


class ConfigError(JacobiError):
    """Invalid run configuration (worker count, coordinator placement, parameters)."""


class DimensionError(JacobiError):
    """Matrix or vector size does not match the problem size n."""


class DivergedError(JacobiError):
    """The iteration blew up.

    Raised on every worker together once the group has agreed on divergence.
    Usually means A is not diagonally dominant.
    """

    def __init__(self, iterations, residual):
        self.iterations = iterations
        self.residual = residual
        super().__init__(
            f"Jacobi iteration diverged after {iterations} iterations (residual: {residual:.2e})"
        )
