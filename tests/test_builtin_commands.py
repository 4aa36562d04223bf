"""Tests for the built-in help and ping commands."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from altaframework.client import ExtendedClient
from altaframework.commands.base import CommandRegistry
from altaframework.commands.builtin import (
    build_command_help,
    build_help_text,
    register_builtin_commands,
    resolve_help_topic,
)


def _registry():
    registry = CommandRegistry()
    registry.register("ping", Mock(return_value=None), category="General", description="Pong")
    registry.register("ban", Mock(return_value=None), category="Moderation",
                      required_permissions=["BAN_MEMBERS", "MANAGE_GUILD"],
                      usage="ban <user>", aliases=["b"])
    registry.register("reload", Mock(return_value=None), owner_only=True)
    registry.register("misc", Mock(return_value=None))
    return registry


def _make_message(content, author_id=1):
    author = SimpleNamespace(id=author_id, bot=False)
    channel = SimpleNamespace(send=AsyncMock())
    return SimpleNamespace(content=content, author=author, channel=channel)


async def _drain():
    for _ in range(5):
        await asyncio.sleep(0)


def test_help_text_groups_by_category():
    text = build_help_text(_registry(), "!")
    assert "General:\n  !ping - Pong" in text
    assert "Moderation:\n  !ban" in text
    assert "Uncategorized:\n  !misc" in text
    assert text.index("General:") < text.index("Moderation:")


def test_help_text_hides_owner_only_from_non_owners():
    assert "!reload" not in build_help_text(_registry(), "!")
    assert "!reload" in build_help_text(_registry(), "!", is_owner=True)


def test_help_text_empty_registry():
    assert build_help_text(CommandRegistry(), "!") == "No commands registered."


def test_command_help_lists_requirements():
    text = build_command_help(_registry().resolve("ban"), "!")
    assert "Usage: !ban <user>" in text
    assert "Aliases: b" in text
    assert "Requires: Ban Members, Manage Server" in text


def test_resolve_help_topic_accepts_prefix_and_alias():
    registry = _registry()
    assert resolve_help_topic(registry, "!ban", "!").name == "ban"
    assert resolve_help_topic(registry, "b", "!").name == "ban"
    assert resolve_help_topic(registry, "reload", "!") is None
    assert resolve_help_topic(registry, "reload", "!", is_owner=True).name == "reload"


@pytest.mark.asyncio
async def test_ping_replies_through_dispatch():
    client = ExtendedClient("test-token", "!")
    register_builtin_commands(client)
    msg = _make_message("!ping")
    await client.on_message(msg)
    await _drain()
    msg.channel.send.assert_awaited_once()
    assert msg.channel.send.await_args.args[0].startswith("Pong!")


@pytest.mark.asyncio
async def test_help_alias_replies_with_command_list():
    client = ExtendedClient("test-token", "!", owner_ids=["42"])
    register_builtin_commands(client)
    client.register("reload", Mock(return_value=None), owner_only=True)

    msg = _make_message("!commands")
    await client.on_message(msg)
    await _drain()
    text = msg.channel.send.await_args.args[0]
    assert "!help" in text and "!ping" in text
    assert "!reload" not in text

    owner_msg = _make_message("!help", author_id=42)
    await client.on_message(owner_msg)
    await _drain()
    assert "!reload" in owner_msg.channel.send.await_args.args[0]


@pytest.mark.asyncio
async def test_help_for_unknown_topic():
    client = ExtendedClient("test-token", "!")
    register_builtin_commands(client)
    msg = _make_message("!help nothing")
    await client.on_message(msg)
    await _drain()
    msg.channel.send.assert_awaited_once_with("Unknown command: nothing")
