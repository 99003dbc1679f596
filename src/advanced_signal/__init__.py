"""advanced-signal: an in-process signal/observer primitive."""

from .config import SignalSettings, get_default_settings, load_settings, reset_default_settings
from .exceptions import ConfigurationError, SchedulerClosedError, SignalError
from .scheduler import CallbackScheduler, get_default_scheduler, set_default_scheduler
from .signals import Connection, Signal

__all__ = [
    "CallbackScheduler",
    "ConfigurationError",
    "Connection",
    "SchedulerClosedError",
    "Signal",
    "SignalError",
    "SignalSettings",
    "get_default_scheduler",
    "get_default_settings",
    "load_settings",
    "reset_default_settings",
    "set_default_scheduler",
]
