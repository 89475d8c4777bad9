from __future__ import annotations

import logging
from abc import ABCMeta, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Union

from acktrack import config
from acktrack.message import Message, MessageIdentifier, to_identifier
from acktrack.unacked import UnacknowledgedSet

if TYPE_CHECKING:
    from acktrack.port.queue import BaseQueueClient
    from acktrack.session import Session

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class BaseAcknowledger(metaclass=ABCMeta):
    """Outlines how consumed messages are tracked and acknowledged"""

    @abstractmethod
    def acknowledge(self, message: Union[Message, MessageIdentifier]) -> None:
        """Acknowledge a consumed message"""

    @abstractmethod
    def notify_message_received(
        self, message: Union[Message, MessageIdentifier]
    ) -> None:
        """Record a message that was consumed but is not yet acknowledged"""

    @abstractmethod
    def get_unack_messages(self) -> list[MessageIdentifier]:
        """Return all consumed but not acknowledged messages"""

    @abstractmethod
    def forget_unack_messages(self) -> None:
        """Clear the list of not acknowledged messages"""


class UnorderedAcknowledger(BaseAcknowledger):
    """Acknowledges messages one at a time, in any order.

    Consumed messages stay tracked until they are acknowledged. With
    `max_unacknowledged_messages` set to a positive number, the oldest
    tracked message is forgotten each time a new one would exceed it.
    When the argument is omitted, the value from the
    `MAX_UNACKNOWLEDGED_MESSAGES` environment variable is used.

    Not safe for concurrent use: an acknowledger must be owned by a single
    consumer, usually through its `Session`.
    """

    def __init__(
        self,
        queue_client: "BaseQueueClient",
        session: "Session",
        max_unacknowledged_messages: Optional[int] = _UNSET,
    ) -> None:
        self.queue_client = queue_client
        self.session = session

        if max_unacknowledged_messages is _UNSET:
            max_unacknowledged_messages = config.max_unacknowledged_messages()
        else:
            max_unacknowledged_messages = config.parse_max_unacknowledged(
                max_unacknowledged_messages
            )

        # Receipt handle -> message identifier
        self._unack_messages = UnacknowledgedSet(max_unacknowledged_messages)

    @property
    def max_unacknowledged_messages(self) -> Optional[int]:
        return self._unack_messages.capacity

    def acknowledge(self, message: Union[Message, MessageIdentifier]) -> None:
        """Acknowledge the consumed message by deleting it from its queue.

        The message stops being tracked only once the delete succeeds. A
        failed delete propagates, and the message remains unacknowledged.
        """
        self.session.check_open()

        identifier = to_identifier(message)
        self.queue_client.delete(identifier.queue_url, identifier.receipt_handle)

        if self._unack_messages.discard(identifier.receipt_handle) is None:
            logger.debug(f"Acknowledged untracked message `{identifier.receipt_handle}`")
        else:
            logger.debug(f"Acknowledged message `{identifier.receipt_handle}`")

    def notify_message_received(
        self, message: Union[Message, MessageIdentifier]
    ) -> None:
        self._unack_messages.add(to_identifier(message))

    def get_unack_messages(self) -> list[MessageIdentifier]:
        return self._unack_messages.snapshot()

    def forget_unack_messages(self) -> None:
        logger.debug(f"Forgetting {len(self._unack_messages)} unacknowledged messages")
        self._unack_messages.clear()
