"""Translate inbound socket events into registry changes and fan-out."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from ..core.config import settings
from ..schemas.boxes import JoinMessage, TextUpdateMessage, UserCountMessage
from .registry import BoxConnection, BoxRegistry, Membership, registry

logger = logging.getLogger(__name__)


class BroadcastRouter:
    """Handle join, text update and disconnect events for box connections.

    Failures never propagate to the transport: bad payloads are logged and
    dropped, updates for unknown boxes are ignored, and sends to closed
    sockets are skipped.
    """

    def __init__(self, registry: BoxRegistry, max_text_length: int = 0) -> None:
        self._registry = registry
        self._max_text_length = max_text_length

    async def handle_message(self, connection: BoxConnection, raw: str | bytes) -> None:
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            logger.warning("Discarding unparseable message from %s: %s", connection.connection_id, exc)
            return

        if not isinstance(data, dict):
            logger.warning("Discarding non-object message from %s", connection.connection_id)
            return

        kind = data.get("type")
        try:
            if kind == "join":
                await self._join(connection, JoinMessage.model_validate(data))
            elif kind == "textUpdate":
                await self._text_update(connection, TextUpdateMessage.model_validate(data))
            else:
                logger.debug("Ignoring message of type %r from %s", kind, connection.connection_id)
        except ValidationError as exc:
            logger.warning(
                "Discarding malformed %s message from %s: %s",
                kind,
                connection.connection_id,
                exc.errors(include_url=False),
            )

    async def handle_close(self, connection: BoxConnection) -> None:
        left = await self._registry.leave(connection)
        if left is None:
            return
        logger.info("Connection %s left box %s (%d remaining)", connection.connection_id, left.box_id, left.count)
        await self._send_count(left)

    async def _join(self, connection: BoxConnection, message: JoinMessage) -> None:
        joined, departed = await self._registry.join(message.box_id, connection)
        logger.info("Connection %s joined box %s (%d viewing)", connection.connection_id, joined.box_id, joined.count)
        if departed is not None:
            await self._send_count(departed)
        await self._send_count(joined)

    async def _text_update(self, connection: BoxConnection, message: TextUpdateMessage) -> None:
        if self._max_text_length and len(message.text) > self._max_text_length:
            logger.warning(
                "Dropping %d-character update from %s (limit %d)",
                len(message.text),
                connection.connection_id,
                self._max_text_length,
            )
            return

        room = await self._registry.apply_text(connection, message.text)
        if room is None:
            logger.debug("Dropping update from %s: no live box", connection.connection_id)
            return
        await self.fan_out(room.members, message.model_dump(), exclude=connection)

    async def _send_count(self, room: Membership) -> None:
        if room.members:
            await self.fan_out(room.members, UserCountMessage(count=room.count).model_dump())

    async def fan_out(
        self,
        members: Iterable[BoxConnection],
        message: dict,
        exclude: Optional[BoxConnection] = None,
    ) -> int:
        """Send a message to every open member except ``exclude``. Returns deliveries."""

        targets = [member for member in members if member is not exclude and member.is_open()]
        if not targets:
            return 0

        results = await asyncio.gather(*(target.send(message) for target in targets), return_exceptions=True)
        delivered = 0
        for target, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.debug("Skipping send to %s: %s", target.connection_id, result)
            else:
                delivered += 1
        return delivered


broadcaster = BroadcastRouter(registry, max_text_length=settings.max_text_length)
