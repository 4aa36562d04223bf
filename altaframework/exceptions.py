"""Custom exception hierarchy for altaframework.

Separates fatal startup failures (configuration, account type) from
registration mistakes made by the embedding application. Policy
denials and unmatched commands are not errors and never raise.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for retry decisions."""
    TRANSIENT = "transient"          # Worth retrying (gateway hiccup, rate limit)
    PERMANENT = "permanent"          # Not worth retrying (bad input)
    INFRASTRUCTURE = "infrastructure"  # Missing config, wrong account type


class AltaError(Exception):
    """Base exception for all altaframework errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification for retry/escalation decisions.
        module: Originating module name (e.g. "client").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error is worth retrying."""
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Startup exceptions
# ---------------------------------------------------------------------------

class ConfigurationError(AltaError):
    """Invalid or missing configuration (token, prefix, owner IDs).

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )


class UnsupportedAccountError(AltaError):
    """The token authenticated a regular user account instead of a bot."""

    def __init__(
        self,
        message: str = "",
        *,
        user_id: Optional[int] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.user_id = user_id
        super().__init__(
            message, category=category, module=module or "client", **context
        )


# ---------------------------------------------------------------------------
# Registration exceptions
# ---------------------------------------------------------------------------

class CommandRegistrationError(AltaError):
    """A command could not be registered (bad options, unknown flag).

    Attributes:
        command: Name of the command being registered.
    """

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        super().__init__(
            message, category=category, module=module or "commands", **context
        )


class CommandCollisionError(CommandRegistrationError):
    """A command name or alias is already claimed by another command.

    Attributes:
        token: The colliding name or alias.
        existing: Canonical name of the command that already owns it.
    """

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[str] = None,
        token: Optional[str] = None,
        existing: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.token = token
        self.existing = existing
        super().__init__(
            message,
            command=command,
            category=category,
            module=module,
            **context,
        )
