__all__ = ["DependencyError", "NotFoundError", "RuleError"]


class DependencyError(Exception):
    """Base class for errors raised while resolving rules or building instances."""

    pass


class NotFoundError(DependencyError, LookupError):
    """Raised when a name cannot be resolved to a type the runtime knows about."""

    pass


class RuleError(DependencyError, ValueError):
    """Raised when a rule specification is malformed."""

    pass
