import logging
import uuid
from collections import OrderedDict, defaultdict
from typing import Any, Optional

from acktrack.message import Message
from acktrack.port.queue import BaseQueueClient

logger = logging.getLogger(__name__)


class MemoryQueueClient(BaseQueueClient):
    """In-process queues, for tests and local development.

    Each receive hands out a fresh receipt handle. Deleting with an unknown
    or stale receipt handle succeeds silently, which is how SQS behaves.
    """

    provider = "memory"

    def __init__(self, name: str, conn_info: dict[str, Any]) -> None:
        super().__init__(name, conn_info)

        # Structure: {queue_url: OrderedDict(message_id: Message)}
        self._pending = defaultdict(OrderedDict)

        # Structure: {queue_url: {receipt_handle: Message}}
        self._in_flight = defaultdict(dict)

        # Every delete call, in call order: [(queue_url, receipt_handle)].
        # A test aid: it grows with each delete until `_data_reset`.
        self.deletes: list[tuple[str, str]] = []

    def _send(self, queue_url: str, body: Any, group_id: Optional[str]) -> str:
        message_id = str(uuid.uuid4())
        self._pending[queue_url][message_id] = Message(
            queue_url=queue_url,
            receipt_handle="",
            body=body,
            message_id=message_id,
            group_id=group_id,
        )
        return message_id

    def _receive(self, queue_url: str, max_messages: int) -> list[Message]:
        pending = self._pending.get(queue_url)
        if not pending:
            return []

        messages = []
        while pending and len(messages) < max_messages:
            _, queued = pending.popitem(last=False)
            delivered = Message(
                queue_url=queue_url,
                receipt_handle=str(uuid.uuid4()),
                body=queued.body,
                message_id=queued.message_id,
                group_id=queued.group_id,
                attributes=dict(queued.attributes),
            )
            self._in_flight[queue_url][delivered.receipt_handle] = delivered
            messages.append(delivered)

        if not pending:
            del self._pending[queue_url]

        return messages

    def _delete(self, queue_url: str, receipt_handle: str) -> None:
        self.deletes.append((queue_url, receipt_handle))

        in_flight = self._in_flight.get(queue_url, {})
        if in_flight.pop(receipt_handle, None) is None:
            logger.debug(f"No in-flight message `{receipt_handle}` in {queue_url}")
        elif not in_flight:
            del self._in_flight[queue_url]

    def _ping(self) -> bool:
        return True

    def _data_reset(self) -> None:
        self._pending.clear()
        self._in_flight.clear()
        self.deletes.clear()

    def pending(self, queue_url: str) -> list[Message]:
        return list(self._pending.get(queue_url, {}).values())

    def in_flight(self, queue_url: str) -> list[Message]:
        return list(self._in_flight.get(queue_url, {}).values())
