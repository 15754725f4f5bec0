"""
Sync engine — long-poll the remote operation log and turn it into events.

One call to ``poll_once()`` is one cycle:

1. fetch operations after the session revision
2. classify the first one (message-bearing kinds vs. everything else)
3. resolve sender/receiver, with at most one directory repair pass
4. emit a SyncEvent
5. advance the revision to max(current, operation.revision)

``listen()`` drives cycles in a loop until the session conflicts or the
caller stops iterating.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, AsyncGenerator, Optional

from talksync.config import DEFAULT_BATCH_SIZE
from talksync.errors import AuthRequired, PollInProgress, SessionConflict, TalkError, UnresolvedReference
from talksync.models.entities import Entity, Message
from talksync.models.records import Operation, RawMessage
from talksync.models.types import MESSAGE_OP_TYPES, op_type_name

if TYPE_CHECKING:
    from talksync.client import AsyncTalkClient

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY_S = 1.0


class SyncEventType(str, Enum):
    MESSAGE = "message"
    NO_OPERATION = "no_operation"
    OPERATION = "operation"
    ERROR = "error"


class SyncEvent:
    __slots__ = ("type", "revision", "sender", "receiver", "message", "operation", "error")

    def __init__(
        self,
        type: SyncEventType,
        revision: int,
        *,
        sender: Optional[Entity] = None,
        receiver: Optional[Entity] = None,
        message: Optional[Message] = None,
        operation: Optional[Operation] = None,
        error: Optional[Exception] = None,
    ):
        self.type = type
        self.revision = revision
        self.sender = sender
        self.receiver = receiver
        self.message = message
        self.operation = operation
        self.error = error

    @property
    def operation_name(self) -> Optional[str]:
        return op_type_name(self.operation.type) if self.operation else None

    def as_tuple(self) -> tuple[Optional[Entity], Optional[Entity], Optional[Message], int]:
        return self.sender, self.receiver, self.message, self.revision

    def __repr__(self) -> str:
        return f"SyncEvent(type={self.type.value!r}, revision={self.revision})"


class SyncEngine:
    def __init__(
        self,
        client: AsyncTalkClient,
        batch_size: int = DEFAULT_BATCH_SIZE,
        retry_delay_s: float = DEFAULT_RETRY_DELAY_S,
    ):
        self._client = client
        self._batch_size = batch_size
        self._retry_delay_s = retry_delay_s
        self._polling = False
        self.repair_count = 0

    @property
    def polling(self) -> bool:
        return self._polling

    async def poll_once(self, count: Optional[int] = None) -> SyncEvent:
        """Run one cycle. Raises AuthRequired, PollInProgress or SessionConflict."""
        self._client.session.ensure_authenticated()
        if self._polling:
            raise PollInProgress()
        self._polling = True
        try:
            return await self._cycle(count or self._batch_size)
        except (SessionConflict, AuthRequired):
            raise
        except Exception as e:
            logger.exception("Poll cycle failed")
            return SyncEvent(SyncEventType.ERROR, self._client.session.revision, error=e)
        finally:
            self._polling = False

    def acknowledge(self, operation: Operation) -> int:
        """Move the cursor past an operation the caller has handled itself."""
        return self._client.session.advance_revision(operation.revision)

    async def listen(
        self, count: Optional[int] = None, acknowledge_operations: bool = True,
    ) -> AsyncGenerator[SyncEvent, None]:
        """Yield one event per cycle until SessionConflict ends the loop.

        Raw (non-message) operations do not advance the cursor on their own;
        with ``acknowledge_operations`` the loop acknowledges them once the
        consumer has seen them so the next fetch moves on.
        """
        while True:
            event = await self.poll_once(count)
            yield event
            if event.type is SyncEventType.OPERATION and acknowledge_operations and event.operation:
                self.acknowledge(event.operation)
            elif event.type is SyncEventType.ERROR:
                await asyncio.sleep(self._retry_delay_s)

    async def _cycle(self, count: int) -> SyncEvent:
        session = self._client.session
        try:
            operations = await self._client._remote(
                self._client.gateway.fetch_operations(session.revision, count)
            )
        except SessionConflict as e:
            logger.error("%s", e)
            raise
        except TalkError as e:
            logger.error("fetchOperations failed: %s", e)
            return SyncEvent(SyncEventType.ERROR, session.revision, error=e)

        if not operations:
            return SyncEvent(SyncEventType.NO_OPERATION, session.revision)

        operation = operations[0]
        if operation.type not in MESSAGE_OP_TYPES:
            logger.info("[*] %s", op_type_name(operation.type) or operation.type)
            return SyncEvent(SyncEventType.OPERATION, session.revision, operation=operation)

        if operation.message is None:
            # Nothing to resolve; the operation is still consumed.
            revision = session.advance_revision(operation.revision)
            return SyncEvent(SyncEventType.OPERATION, revision, operation=operation)

        record = operation.message
        if not self._resolvable(record):
            await self._repair()

        message = Message.from_record(self._client.directory, record)
        error = None
        if not message.resolved:
            error = UnresolvedReference(
                record.from_, record.to,
                sender_resolved=message.sender is not None,
                receiver_resolved=message.receiver is not None,
            )
            logger.warning("%s", error)

        revision = session.advance_revision(operation.revision)
        return SyncEvent(
            SyncEventType.MESSAGE, revision,
            sender=message.sender, receiver=message.receiver,
            message=message, operation=operation, error=error,
        )

    def _resolvable(self, record: RawMessage) -> bool:
        directory = self._client.directory
        receiver = directory.resolve(record.to)
        sender = directory.resolve_sender(record.from_, receiver)
        return sender is not None and receiver is not None

    async def _repair(self) -> None:
        """Refresh groups, contacts and active rooms once."""
        self.repair_count += 1
        logger.info("Unknown sender/receiver, refreshing directory")
        steps = (
            self._client.refresh_groups,
            self._client.refresh_contacts,
            self._client.refresh_active_rooms,
        )
        for refresh in steps:
            try:
                result = await refresh()
            except AuthRequired:
                logger.warning("Directory repair stopped: session is no longer authenticated")
                return
            if isinstance(result, TalkError):
                logger.warning("Directory repair step %s failed: %s", refresh.__name__, result)
