"""Custom exceptions raised by advanced-signal."""


class SignalError(RuntimeError):
    """Base error for all signal related exceptions."""


class ConfigurationError(SignalError):
    """Raised when the external settings source cannot be read."""


class SchedulerClosedError(SignalError):
    """Raised when a callback is dispatched to a scheduler after shutdown."""
