"""Discord client façade for altaframework.

Wraps discord.Client with a prefix-command layer: owns the command
registry and dispatcher, keeps a log of deleted messages, and refuses
to run on anything but a bot account.

Key classes:
    ExtendedClient: discord.Client subclass exposing register(),
        registered_commands, authorize() and node_to_name().
"""

import asyncio
from typing import Any, Callable, Collection, Dict, List, Optional

import discord
import structlog

from .commands.base import CommandDefinition, CommandHandler, CommandListener, CommandRegistry
from .dispatcher import Dispatcher
from .exceptions import ConfigurationError, UnsupportedAccountError
from .security import node_to_name

logger = structlog.get_logger("altaframework.client")


def default_intents() -> discord.Intents:
    """Default intents plus message content, which prefix commands need."""
    intents = discord.Intents.default()
    intents.message_content = True
    return intents


class ExtendedClient(discord.Client):
    """discord.Client with prefix commands, owner gating and permission checks.

    Construction fails fast if the token or prefix is missing. The
    connection is opened with authorize(); once connected, a non-bot
    identity closes the client and authorize() raises
    UnsupportedAccountError.

    Args:
        token: Bot token used by authorize().
        prefix: Command prefix, e.g. ``"!"``.
        owner_ids: User IDs allowed to run owner-only commands.
        intents: Gateway intents. Defaults to default_intents().
        **options: Passed through to discord.Client.

    Raises:
        ConfigurationError: Token or prefix missing.
    """

    def __init__(
        self,
        token: str,
        prefix: str,
        owner_ids: Optional[Collection[Any]] = None,
        *,
        intents: Optional[discord.Intents] = None,
        **options: Any,
    ):
        if not prefix:
            raise ConfigurationError(
                "No prefix was provided into the client options.",
                setting_name="prefix",
            )
        if not token:
            raise ConfigurationError(
                "No token was provided into the client options.",
                setting_name="token",
            )

        super().__init__(intents=intents or default_intents(), **options)

        self._token = token
        self.prefix = prefix
        self.owner_ids: Optional[frozenset] = (
            frozenset(str(i) for i in owner_ids) if owner_ids else None
        )
        self.commands = CommandRegistry()
        self.deleted_messages: Dict[int, discord.Message] = {}
        self.dispatcher = Dispatcher(self.commands, prefix, self.owner_ids)
        self._fatal_error: Optional[Exception] = None

    @classmethod
    def from_config(cls, config, **options: Any) -> "ExtendedClient":
        """Build a client from a Config (token, prefix, owner IDs, intents)."""
        intents = discord.Intents.default()
        intents.message_content = config.intents_message_content
        return cls(
            config.token,
            config.prefix,
            config.owner_ids,
            intents=intents,
            **options,
        )

    # --- Registration ---

    def register(
        self, name: str, handler: CommandHandler, **options: Any
    ) -> CommandDefinition:
        """Register a command. See CommandRegistry.register for options."""
        return self.commands.register(name, handler, **options)

    def command(self, name: Optional[str] = None, **options: Any) -> Callable:
        """Decorator form of register(); the name defaults to the function name."""
        def decorator(func: CommandHandler) -> CommandHandler:
            self.register(name or func.__name__, func, **options)
            return func
        return decorator

    def add_command_listener(self, callback: CommandListener) -> None:
        """Call ``callback(name, handler)`` the first time each command name is registered."""
        self.commands.add_listener(callback)

    @property
    def registered_commands(self) -> List[str]:
        """Names of every registered command (a snapshot)."""
        return list(self.commands.command_names)

    def node_to_name(self, permission_node: str) -> str:
        """Convert a permission node to a user-friendly permission name."""
        return node_to_name(permission_node)

    def get_deleted_message(self, message_id: int) -> Optional[discord.Message]:
        """Last known content of a deleted message, if it was seen."""
        return self.deleted_messages.get(message_id)

    # --- Lifecycle ---

    async def authorize(self) -> None:
        """Connect to Discord with the configured token.

        Returns when the connection closes.

        Raises:
            UnsupportedAccountError: The token belongs to a user account.
        """
        logger.info(
            "client_connecting",
            prefix=self.prefix,
            commands=len(self.commands),
            owners=len(self.owner_ids or ()),
        )
        await self.start(self._token)
        if self._fatal_error is not None:
            raise self._fatal_error

    def run_forever(self) -> None:
        """Blocking variant of authorize() that owns the event loop."""
        async def runner():
            async with self:
                await self.authorize()

        asyncio.run(runner())

    # --- Gateway events ---

    async def on_ready(self):
        user = self.user
        if user is not None and not user.bot:
            logger.critical("user_account_rejected", user_id=user.id)
            self._fatal_error = UnsupportedAccountError(
                "altaframework does not support user bots. Please retry with a bot token.",
                user_id=user.id,
            )
            await self.close()
            return
        logger.info(
            "client_ready",
            user=str(user),
            guilds=len(self.guilds),
            commands=self.registered_commands,
        )

    async def on_message_delete(self, message: discord.Message):
        self.deleted_messages[message.id] = message

    async def on_message(self, message: discord.Message):
        self.dispatcher.dispatch(message)
