"""Command definitions and the command registry.

Commands are registered by name with a handler and optional gating
(owner-only, required permissions) plus free-form help metadata.
The registry resolves an incoming token to a definition by canonical
name (case-insensitive) and then by alias, and notifies listeners the
first time each name is registered.

Key classes:
    PermissionRequirement: Permission flags plus optional denial fallback.
    CommandOptions: Validated optional settings for a command.
    CommandDefinition: A registered command.
    CommandRegistry: Name/alias lookup with once-per-name notification.
"""

from __future__ import annotations

from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
)

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import CommandCollisionError, CommandRegistrationError
from ..security import normalize_permission

logger = structlog.get_logger("altaframework.commands")

# Handler signature: (message: discord.Message, args: List[str]) -> Any.
# Coroutine functions are allowed; the dispatcher schedules the result.
CommandHandler = Callable[..., Any]

# Listener signature for "command created": (name, handler) -> None
CommandListener = Callable[[str, CommandHandler], None]


def _check_token(value: str, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{what} must be a non-empty string")
    if any(ch.isspace() for ch in value):
        raise ValueError(f"{what} cannot contain whitespace: {value!r}")
    return value


class PermissionRequirement(BaseModel):
    """Guild permissions a caller must hold to run a command.

    Attributes:
        permissions: Flags, all of which are required. Accepts nodes
            (``"MANAGE_GUILD"``) or attribute names (``"manage_guild"``).
        on_denied: Called as ``on_denied(message, args)`` in place of
            the command handler when the caller lacks a flag.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    permissions: Tuple[str, ...] = ()
    on_denied: Optional[CommandHandler] = None

    @field_validator("permissions", mode="before")
    @classmethod
    def _normalize_permissions(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        return tuple(normalize_permission(flag) for flag in value)


class CommandOptions(BaseModel):
    """Optional settings accepted by CommandRegistry.register().

    Fields left out at registration stay unset and are omitted from
    CommandDefinition.describe().
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    owner_only: bool = False
    required_permissions: Optional[PermissionRequirement] = None
    aliases: FrozenSet[str] = Field(default_factory=frozenset)
    category: Optional[str] = None
    description: Optional[str] = None
    usage: Optional[str] = None

    @field_validator("required_permissions", mode="before")
    @classmethod
    def _coerce_permissions(cls, value: Any) -> Any:
        # A bare flag or list of flags is shorthand for no fallback
        if isinstance(value, (str, list, tuple)):
            return {"permissions": value}
        return value

    @field_validator("aliases", mode="before")
    @classmethod
    def _check_aliases(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        return frozenset(_check_token(alias, "Alias") for alias in value)


class CommandDefinition(CommandOptions):
    """A registered command: name, handler and its options."""

    name: str
    handler: CommandHandler

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return _check_token(value, "Command name")

    def describe(self) -> Dict[str, Any]:
        """Return the explicitly provided fields, minus the handler."""
        return self.model_dump(exclude_unset=True, exclude={"handler"})


class CommandRegistry:
    """Maps command names and aliases to CommandDefinitions.

    Names are matched case-insensitively; aliases exactly. A name can
    only be held by one command, and an alias can't shadow another
    command's name or alias (CommandCollisionError). Re-registering a
    name replaces the definition but listeners are only told about a
    name the first time it is seen by this registry.
    """

    def __init__(self):
        self._commands: Dict[str, CommandDefinition] = {}
        self._notified: Set[str] = set()
        self._listeners: List[CommandListener] = []

    def add_listener(self, callback: CommandListener) -> None:
        """Register a callback fired once per new command name."""
        self._listeners.append(callback)

    def register(
        self, name: str, handler: CommandHandler, **options: Any
    ) -> CommandDefinition:
        """Register (or replace) a command.

        Args:
            name: Canonical command name.
            handler: Called as ``handler(message, args)``.
            **options: owner_only, required_permissions, aliases,
                category, description, usage. None values count as
                not provided.

        Returns:
            The stored CommandDefinition.

        Raises:
            CommandRegistrationError: Invalid name, handler or options.
            CommandCollisionError: Name or alias already taken.
        """
        provided = {k: v for k, v in options.items() if v is not None}
        try:
            definition = CommandDefinition(name=name, handler=handler, **provided)
        except ValidationError as e:
            raise CommandRegistrationError(
                f"Invalid command definition: {e}", command=str(name)
            ) from e

        key = definition.name.lower()
        self._check_collisions(key, definition)

        replaced = key in self._commands
        self._commands[key] = definition
        logger.info(
            "command_registered",
            command=definition.name,
            aliases=sorted(definition.aliases),
            owner_only=definition.owner_only,
            replaced=replaced,
        )

        if key not in self._notified:
            self._notified.add(key)
            for listener in list(self._listeners):
                listener(definition.name, handler)
        return definition

    def _check_collisions(self, key: str, definition: CommandDefinition) -> None:
        for other_key, other in self._commands.items():
            if other_key == key:
                continue  # replacement of the same command
            if key in other.aliases:
                raise CommandCollisionError(
                    f"Command name '{definition.name}' is an alias of '{other.name}'",
                    command=definition.name,
                    token=definition.name,
                    existing=other.name,
                )
            for alias in definition.aliases:
                if alias.lower() == other_key or alias in other.aliases:
                    raise CommandCollisionError(
                        f"Alias '{alias}' is already used by '{other.name}'",
                        command=definition.name,
                        token=alias,
                        existing=other.name,
                    )

    def resolve(self, token: str) -> Optional[CommandDefinition]:
        """Find the command a token refers to.

        Canonical names match case-insensitively. Otherwise every
        definition's aliases are checked for an exact match.
        """
        definition = self._commands.get(token.lower())
        if definition is not None:
            return definition
        for definition in self._commands.values():
            if token in definition.aliases:
                return definition
        return None

    def get(self, name: str) -> Optional[CommandDefinition]:
        """Look up a command by canonical name only."""
        return self._commands.get(name.lower())

    @property
    def command_names(self) -> List[str]:
        """All registered canonical names."""
        return [definition.name for definition in self._commands.values()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[CommandDefinition]:
        return iter(list(self._commands.values()))
