"""Message dispatch for altaframework.

Turns an inbound chat message into at most one handler call:
prefix check, tokenization, registry lookup, authorization, then the
command handler (or its on_denied fallback). Each step can end the
pipeline; nothing is raised for unmatched or denied commands.

Handlers are fire-and-forget. A handler returning an awaitable has it
scheduled on the running loop; the dispatcher never awaits it, so
invocations of the same or different commands may interleave.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Collection, List, Optional

import structlog

from .commands.base import CommandHandler, CommandRegistry
from .security import Decision, authorize

logger = structlog.get_logger("altaframework.commands")


class DispatchOutcome(str, Enum):
    """Where the pipeline stopped for a message."""
    IGNORED = "ignored"        # No prefix, bot author, or empty command
    UNMATCHED = "unmatched"    # Prefixed but no such command
    DENIED = "denied"          # Authorization failed, nothing invoked
    NOTIFIED = "notified"      # Authorization failed, on_denied invoked
    INVOKED = "invoked"        # Command handler invoked


@dataclass
class ParsedCommand:
    """A prefixed message split into command name and arguments."""
    name: str
    args: List[str] = field(default_factory=list)


def parse_command(content: str, prefix: str) -> Optional[ParsedCommand]:
    """Split prefixed message content into a command and its arguments.

    Returns None if the content doesn't start with the prefix or
    nothing follows it. The command name is lower-cased; arguments
    are split on runs of whitespace and keep their case.
    """
    if not prefix or not content.startswith(prefix):
        return None
    tokens = content[len(prefix):].split()
    if not tokens:
        return None
    return ParsedCommand(name=tokens[0].lower(), args=tokens[1:])


def log_task_exception(task: asyncio.Task):
    """Log exceptions from fire-and-forget handler tasks instead of silently swallowing them."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error(
            "handler_task_failed",
            task=task.get_name(),
            error=str(exc),
            exc_type=type(exc).__name__,
        )


class Dispatcher:
    """Routes inbound messages to registered command handlers.

    Args:
        registry: Command registry to resolve names against.
        prefix: Command prefix, e.g. ``"!"``.
        owner_ids: Owner user IDs (compared as strings).
        create_task: Schedules a handler's coroutine. Defaults to
            asyncio.create_task on the running loop.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        prefix: str,
        owner_ids: Optional[Collection[Any]] = None,
        create_task: Optional[Callable[..., asyncio.Task]] = None,
    ):
        self.registry = registry
        self.prefix = prefix
        self.owner_ids = frozenset(str(i) for i in owner_ids) if owner_ids else frozenset()
        self._create_task = create_task or asyncio.create_task
        # Strong refs so pending handler tasks aren't garbage-collected
        self._pending: set = set()

    def dispatch(self, message: Any) -> DispatchOutcome:
        """Run one message through the pipeline.

        Args:
            message: A discord.Message (or anything with ``content``,
                ``author.id``, ``author.bot`` and, for guild members,
                ``author.guild_permissions``).

        Returns:
            The DispatchOutcome at which the pipeline stopped.
        """
        author = message.author
        if getattr(author, "bot", False):
            return DispatchOutcome.IGNORED

        parsed = parse_command(message.content or "", self.prefix)
        if parsed is None:
            return DispatchOutcome.IGNORED

        definition = self.registry.resolve(parsed.name)
        if definition is None:
            logger.debug("command_unmatched", command=parsed.name)
            return DispatchOutcome.UNMATCHED

        # discord.User (DMs) has no guild_permissions
        permissions = getattr(author, "guild_permissions", None)
        result = authorize(definition, author.id, permissions, self.owner_ids)

        if result.decision is Decision.ALLOW:
            logger.info(
                "command_invoked",
                command=definition.name,
                invoked_as=parsed.name,
                author_id=str(author.id),
                arg_count=len(parsed.args),
            )
            self._invoke(definition.name, definition.handler, message, parsed.args)
            return DispatchOutcome.INVOKED

        if result.decision is Decision.DENY_NOTIFY:
            self._invoke(f"{definition.name}:on_denied", result.handler, message, parsed.args)
            return DispatchOutcome.NOTIFIED

        return DispatchOutcome.DENIED

    def _invoke(
        self, label: str, handler: CommandHandler, message: Any, args: List[str]
    ) -> None:
        """Call a handler and schedule its result if it is awaitable."""
        result = handler(message, args)
        if inspect.isawaitable(result):
            task = self._create_task(_await(result), name=f"command:{label}")
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            task.add_done_callback(log_task_exception)


async def _await(awaitable):
    return await awaitable
