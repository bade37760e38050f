"""
Chat-platform adapter: issues slash commands and forwards replies.

Built on discord.py-self, which is imported as `discord`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import discord

from owner_scout.lookup.correlator import LookupCommandError, LookupReply
from owner_scout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

ReplyHandler = Callable[[LookupReply], bool]


def reply_from_message(message: Any) -> LookupReply:
    """
    Reduce a chat message to the correlator's reply shape.
    """

    description: str | None = None
    fields: list[tuple[str, str]] = []
    if message.embeds:
        embed = message.embeds[0]
        description = embed.description or None
        fields = [(item.name or "", item.value or "") for item in embed.fields]
    return LookupReply(
        author_id=message.author.id,
        channel_id=message.channel.id,
        embed_description=description,
        embed_fields=fields,
    )


class DiscordLookupClient(discord.Client):
    """
    User client that sends the lookup slash command on behalf of the worker.

    Every inbound message is offered to `reply_handler`; filtering by author,
    channel and pending state happens in the correlator.
    """

    def __init__(self, *, responder_id: int, **options: Any) -> None:
        super().__init__(**options)
        self._responder_id = responder_id
        self._reply_handler: ReplyHandler | None = None
        self.ready_event = asyncio.Event()

    def set_reply_handler(self, handler: ReplyHandler) -> None:
        self._reply_handler = handler

    async def on_ready(self) -> None:
        log_event(logger, logging.INFO, "chat_client_ready", user=str(self.user))
        self.ready_event.set()

    async def on_message(self, message: discord.Message) -> None:
        if self._reply_handler is None or message.author.id != self._responder_id:
            return
        self._reply_handler(reply_from_message(message))

    async def on_error(self, event_method: str, *args: Any, **kwargs: Any) -> None:
        logger.exception("Chat client error in %s", event_method)

    async def send_command(
        self,
        channel_id: int,
        command_name: str,
        subcommand_name: str,
        arg_value: str,
        *,
        option_name: str,
    ) -> None:
        channel = self.get_channel(channel_id) or await self.fetch_channel(channel_id)
        commands = await channel.application_commands()
        command = next(
            (
                item
                for item in commands
                if item.name == command_name
                and getattr(item, "application_id", None) == self._responder_id
            ),
            None,
        )
        if command is None:
            raise LookupCommandError(
                f"Command '/{command_name}' from application {self._responder_id} "
                f"is not available in channel {channel_id}."
            )

        target = command
        if subcommand_name:
            target = next(
                (child for child in getattr(command, "children", []) if child.name == subcommand_name),
                None,
            )
            if target is None:
                raise LookupCommandError(
                    f"Subcommand '/{command_name} {subcommand_name}' was not found."
                )

        await target(channel, **{option_name: arg_value})
        log_event(
            logger,
            logging.DEBUG,
            "slash_command_sent",
            command=f"{command_name} {subcommand_name}".strip(),
            value=arg_value,
        )
