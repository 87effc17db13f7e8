"""Exceptions raised by the routing core."""


class RegistryError(Exception):
    """Base class for plugin registry failures."""


class AlreadyInstantiatedError(RegistryError):
    """Raised when an instance with the same name/channel is already registered."""


class UnknownPluginError(RegistryError):
    """Raised when an instance belongs to a plugin the registry does not hold."""


class InvalidPatternError(RegistryError, ValueError):
    """Raised when an instance pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class InvariantViolationError(RegistryError):
    """Raised when a caller breaks a registry precondition.

    This signals a bug in the orchestration layer, not a runtime fault.
    The registry's default handler terminates the process.
    """


class PreferenceError(Exception):
    """Raised when a preference store cannot read or write a value."""
