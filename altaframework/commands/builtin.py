"""Built-in commands: help and ping.

Optional; main.py installs them unless ``builtin_commands: false`` is
set in settings.yaml. Help text is generated from each command's
category, description and usage metadata.
"""

from typing import TYPE_CHECKING, Dict, List, Optional

import structlog

from ..security import node_to_name
from .base import CommandDefinition, CommandRegistry

if TYPE_CHECKING:
    from ..client import ExtendedClient

logger = structlog.get_logger("altaframework.commands")

UNCATEGORIZED = "Uncategorized"


def build_help_text(
    registry: CommandRegistry, prefix: str, is_owner: bool = False
) -> str:
    """List visible commands grouped by category.

    Owner-only commands are hidden from non-owners.
    """
    groups: Dict[str, List[CommandDefinition]] = {}
    for definition in registry:
        if definition.owner_only and not is_owner:
            continue
        groups.setdefault(definition.category or UNCATEGORIZED, []).append(definition)

    if not groups:
        return "No commands registered."

    lines = ["Commands:"]
    for category in sorted(groups):
        lines.append("")
        lines.append(f"{category}:")
        for definition in sorted(groups[category], key=lambda d: d.name.lower()):
            line = f"  {prefix}{definition.name}"
            if definition.description:
                line += f" - {definition.description}"
            lines.append(line)
    lines.append("")
    lines.append(f"Use {prefix}help <command> for details.")
    return "\n".join(lines)


def build_command_help(definition: CommandDefinition, prefix: str) -> str:
    """Detailed help for one command."""
    lines = [f"{prefix}{definition.name}"]
    if definition.description:
        lines.append(definition.description)
    if definition.usage:
        lines.append(f"Usage: {prefix}{definition.usage}")
    if definition.aliases:
        lines.append("Aliases: " + ", ".join(sorted(definition.aliases)))
    requirement = definition.required_permissions
    if requirement is not None and requirement.permissions:
        names = [node_to_name(flag.upper()) for flag in requirement.permissions]
        lines.append("Requires: " + ", ".join(names))
    if definition.owner_only:
        lines.append("Owner only.")
    return "\n".join(lines)


def resolve_help_topic(
    registry: CommandRegistry, topic: str, prefix: str, is_owner: bool = False
) -> Optional[CommandDefinition]:
    """Resolve a help topic, hiding owner-only commands from non-owners.

    Accepts the topic with or without the prefix ("ping" or "!ping").
    """
    if prefix and topic.startswith(prefix):
        topic = topic[len(prefix):]
    definition = registry.resolve(topic.lower())
    if definition is None or (definition.owner_only and not is_owner):
        return None
    return definition


def register_builtin_commands(client: "ExtendedClient") -> None:
    """Register help and ping on a client."""

    async def handle_help(message, args):
        owner = bool(client.owner_ids) and str(message.author.id) in client.owner_ids
        if args:
            definition = resolve_help_topic(
                client.commands, args[0], client.prefix, is_owner=owner
            )
            if definition is None:
                text = f"Unknown command: {args[0]}"
            else:
                text = build_command_help(definition, client.prefix)
        else:
            text = build_help_text(client.commands, client.prefix, is_owner=owner)
        await message.channel.send(text)

    async def handle_ping(message, args):
        latency = client.latency
        if latency != latency:  # NaN before the first heartbeat
            await message.channel.send("Pong!")
        else:
            await message.channel.send(f"Pong! ({latency * 1000:.0f} ms)")

    client.register(
        "help",
        handle_help,
        aliases=["commands"],
        category="General",
        description="List commands, or show details for one.",
        usage="help [command]",
    )
    client.register(
        "ping",
        handle_ping,
        category="General",
        description="Check that the bot is responding.",
        usage="ping",
    )
    logger.debug("builtin_commands_registered", commands=["help", "ping"])
