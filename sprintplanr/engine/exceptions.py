class SchedulingError(Exception):
    """Base class for errors raised by the optimization engine."""


class InvalidInputError(SchedulingError, ValueError):
    """Inputs or run configuration rejected before an optimization run starts."""


class OptimizationAborted(SchedulingError):
    """Run abandoned between generations (cancelled or over its time limit)."""
