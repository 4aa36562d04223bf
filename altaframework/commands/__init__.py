"""Command registry for altaframework.

Provides CommandDefinition, PermissionRequirement and the
CommandRegistry that maps names and aliases to definitions.
"""

from .base import (
    CommandDefinition,
    CommandHandler,
    CommandOptions,
    CommandRegistry,
    PermissionRequirement,
)

__all__ = [
    "CommandDefinition",
    "CommandHandler",
    "CommandOptions",
    "CommandRegistry",
    "PermissionRequirement",
]
