"""
Single-slot correlation between an identity lookup command and its reply.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from owner_scout.domain.owners import LookupOutcome, LookupResult
from owner_scout.scraping.config.models import LookupSettings
from owner_scout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

NOT_FOUND_MARKERS = (
    "specified user is not in this server",
    "not verified",
)

# A reply this soon after a send, following a timeout, may answer the timed-out lookup.
LATE_REPLY_WINDOW_SECONDS = 1.0


class LookupBusyError(LookupError):
    """
    Raised when a lookup is requested while another is still awaiting a reply.
    """


class LookupCommandError(LookupError):
    """
    Raised when the lookup command could not be issued.
    """


@dataclass(frozen=True)
class LookupReply:
    """
    Inbound message reduced to the parts the correlator reads (first embed only).
    """

    author_id: int
    channel_id: int
    embed_description: str | None = None
    embed_fields: list[tuple[str, str]] = field(default_factory=list)


class LookupGateway(Protocol):
    async def send_command(
        self,
        channel_id: int,
        command_name: str,
        subcommand_name: str,
        arg_value: str,
        *,
        option_name: str,
    ) -> None: ...


def parse_lookup_reply(reply: LookupReply) -> str | None:
    """
    Extract the matched identity from a reply, or None when not found.

    The first description line is authoritative when present; otherwise the
    first field whose label mentions "discord" is used.
    """

    value = ""
    if reply.embed_description:
        value = reply.embed_description.split("\n", 1)[0].strip()
    if not value:
        for name, field_value in reply.embed_fields:
            if "discord" in (name or "").lower():
                value = (field_value or "").strip()
                break

    if not value:
        return None
    lowered = value.lower()
    if any(marker in lowered for marker in NOT_FOUND_MARKERS):
        return None
    return value


@dataclass
class _PendingLookup:
    subject: str
    future: asyncio.Future[LookupResult]
    sent_at: float


class LookupCorrelator:
    """
    Issues one lookup at a time and waits for the designated responder.

    A reply is only consumed while a request is awaiting and when both its
    author and channel match the configuration. Whichever of reply or
    timeout comes first resolves the request; the other becomes a no-op.
    """

    def __init__(self, *, gateway: LookupGateway, settings: LookupSettings) -> None:
        self._gateway = gateway
        self._settings = settings
        self._pending: _PendingLookup | None = None
        self._timed_out_subject: str | None = None

    @property
    def awaiting(self) -> bool:
        return self._pending is not None

    @property
    def current_subject(self) -> str | None:
        return self._pending.subject if self._pending is not None else None

    async def request(self, candidate_name: str) -> LookupResult:
        if self._pending is not None:
            raise LookupBusyError(
                f"Lookup for '{self._pending.subject}' is still awaiting a reply."
            )
        if self._settings.channel_id is None:
            raise LookupCommandError(
                f"Lookup for '{candidate_name}' skipped: no lookup channel is configured."
            )

        pending = _PendingLookup(
            subject=candidate_name,
            future=asyncio.get_running_loop().create_future(),
            sent_at=asyncio.get_running_loop().time(),
        )
        self._pending = pending
        try:
            await self._gateway.send_command(
                self._settings.channel_id,
                self._settings.command_name,
                self._settings.subcommand_name,
                candidate_name,
                option_name=self._settings.option_name,
            )
        except Exception as exc:
            self._release(pending)
            raise LookupCommandError(f"Lookup command for '{candidate_name}' failed: {exc}") from exc
        log_event(logger, logging.INFO, "lookup_sent", subject=candidate_name)

        try:
            return await asyncio.wait_for(
                asyncio.shield(pending.future),
                timeout=self._settings.timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._release(pending)
            self._timed_out_subject = candidate_name
            log_event(
                logger,
                logging.WARNING,
                "lookup_timed_out",
                subject=candidate_name,
                timeout_seconds=self._settings.timeout_seconds,
            )
            return LookupResult(subject=candidate_name, outcome=LookupOutcome.TIMEOUT)
        finally:
            self._release(pending)

    def handle_reply(self, reply: LookupReply) -> bool:
        """
        Offer an inbound message; returns True when it resolved the request.
        """

        pending = self._pending
        if (
            reply.author_id != self._settings.responder_id
            or reply.channel_id != self._settings.channel_id
            or pending is None
            or pending.future.done()
        ):
            return False

        self._warn_if_possibly_late(pending)
        identity = parse_lookup_reply(reply)
        if identity is None:
            result = LookupResult(subject=pending.subject, outcome=LookupOutcome.NOT_FOUND)
        else:
            result = LookupResult(
                subject=pending.subject,
                outcome=LookupOutcome.MATCHED,
                identity=identity,
            )
        pending.future.set_result(result)
        self._release(pending)
        log_event(
            logger,
            logging.INFO,
            "lookup_reply_received",
            subject=result.subject,
            outcome=result.outcome.value,
            identity=result.identity,
        )
        return True

    def _warn_if_possibly_late(self, pending: _PendingLookup) -> None:
        previous = self._timed_out_subject
        self._timed_out_subject = None
        if previous is None:
            return
        elapsed = asyncio.get_running_loop().time() - pending.sent_at
        if elapsed < LATE_REPLY_WINDOW_SECONDS:
            log_event(
                logger,
                logging.WARNING,
                "lookup_reply_possibly_late",
                subject=pending.subject,
                timed_out_subject=previous,
                elapsed_seconds=round(elapsed, 3),
            )

    def _release(self, pending: _PendingLookup) -> None:
        if self._pending is pending:
            self._pending = None
        if not pending.future.done():
            pending.future.cancel()
