"""altaframework: prefix commands with owner and permission gating for discord.py."""

__version__ = "1.0.0"

from .client import ExtendedClient
from .commands import CommandDefinition, CommandRegistry, PermissionRequirement
from .dispatcher import DispatchOutcome, Dispatcher
from .exceptions import (
    AltaError,
    CommandCollisionError,
    CommandRegistrationError,
    ConfigurationError,
    UnsupportedAccountError,
)

__all__ = [
    "AltaError",
    "CommandCollisionError",
    "CommandDefinition",
    "CommandRegistrationError",
    "CommandRegistry",
    "ConfigurationError",
    "DispatchOutcome",
    "Dispatcher",
    "ExtendedClient",
    "PermissionRequirement",
    "UnsupportedAccountError",
]
