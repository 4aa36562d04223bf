"""Authorization for altaframework commands.

Decides whether a caller may run a resolved command. Two independent
gates apply: owner-only (caller must be in the configured owner-ID set)
and required permissions (caller's guild permission snapshot must hold
every listed flag). Ownership is checked first and fails silently;
a permission failure falls back to the command's on_denied handler
when one is configured.

Also provides the permission-node helpers used at registration time
and for user-facing display.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Collection, Iterable, Optional

import discord
import structlog

if TYPE_CHECKING:
    from .commands.base import CommandDefinition

logger = structlog.get_logger("altaframework.security")

# Nodes whose Discord UI label differs from the mechanical title-casing
_NODE_DISPLAY_OVERRIDES = {
    "MANAGE_GUILD": "Manage Server",
}


class Decision(str, Enum):
    """Outcome of an authorization check."""
    ALLOW = "allow"
    DENY_SILENT = "deny_silent"
    DENY_NOTIFY = "deny_notify"


@dataclass(frozen=True)
class AuthorizationResult:
    """Decision plus the handler to run in its place, if any.

    Attributes:
        decision: ALLOW, DENY_SILENT or DENY_NOTIFY.
        handler: The on_denied fallback for DENY_NOTIFY, else None.
        missing: Permission flags the caller lacked.
    """
    decision: Decision
    handler: Optional[Callable[..., Any]] = None
    missing: tuple = ()

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOW


ALLOW = AuthorizationResult(Decision.ALLOW)


def normalize_permission(flag: str) -> str:
    """Normalize a permission node or attribute name to the attribute name.

    ``"MANAGE_GUILD"`` and ``"manage_guild"`` both become
    ``"manage_guild"``.

    Raises:
        ValueError: If the flag is not a known Discord permission.
    """
    if not isinstance(flag, str):
        raise ValueError(f"Permission flag must be a string, got {type(flag).__name__}")
    name = flag.strip().lower()
    if name not in discord.Permissions.VALID_FLAGS:
        raise ValueError(f"Unknown permission flag: {flag}")
    return name


def missing_permissions(
    permissions: Optional[discord.Permissions], flags: Iterable[str]
) -> tuple:
    """Return the flags the snapshot does NOT hold (empty tuple = pass).

    Every flag is evaluated; the result is the AND over the full set.
    A missing snapshot (message outside a guild) holds nothing.
    """
    flags = tuple(flags)
    if permissions is None:
        return flags
    return tuple(flag for flag in flags if not getattr(permissions, flag, False))


def is_owner(author_id: Any, owner_ids: Optional[Collection[str]]) -> bool:
    """Check whether an author ID is in the owner set.

    IDs are compared as strings so int snowflakes match string config.
    """
    if not owner_ids:
        return False
    return str(author_id) in owner_ids


def authorize(
    definition: "CommandDefinition",
    author_id: Any,
    permissions: Optional[discord.Permissions],
    owner_ids: Optional[Collection[str]] = None,
) -> AuthorizationResult:
    """Decide whether a caller may run a resolved command.

    Args:
        definition: The matched command.
        author_id: Caller identity (Discord user ID).
        permissions: Caller's guild permission snapshot, or None in DMs.
        owner_ids: Configured owner IDs (strings).

    Returns:
        AuthorizationResult with ALLOW, DENY_SILENT or DENY_NOTIFY.
    """
    if definition.owner_only and not is_owner(author_id, owner_ids):
        logger.info(
            "command_denied",
            command=definition.name,
            author_id=str(author_id),
            reason="not_owner",
        )
        return AuthorizationResult(Decision.DENY_SILENT)

    requirement = definition.required_permissions
    if requirement is not None and requirement.permissions:
        missing = missing_permissions(permissions, requirement.permissions)
        if missing:
            logger.info(
                "command_denied",
                command=definition.name,
                author_id=str(author_id),
                reason="missing_permissions",
                missing=list(missing),
                notify=requirement.on_denied is not None,
            )
            if requirement.on_denied is not None:
                return AuthorizationResult(
                    Decision.DENY_NOTIFY, requirement.on_denied, missing
                )
            return AuthorizationResult(Decision.DENY_SILENT, missing=missing)

    return ALLOW


def node_to_name(permission_node: str) -> str:
    """Convert a permission node to its user-facing Discord name.

    ``"SEND_MESSAGES"`` becomes ``"Send Messages"``; ``"MANAGE_GUILD"``
    is shown as ``"Manage Server"`` as in the Discord client.
    """
    override = _NODE_DISPLAY_OVERRIDES.get(permission_node.upper())
    if override:
        return override
    return " ".join(
        word.capitalize() for word in permission_node.split("_") if word
    )
