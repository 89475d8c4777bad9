from __future__ import annotations

import logging
from abc import ABCMeta, abstractmethod
from typing import Any, Optional

from acktrack.exceptions import AckTrackException, DeleteFailedError, ValidationError
from acktrack.message import Message

logger = logging.getLogger(__name__)

# SQS never returns more than 10 messages per receive call
MAX_RECEIVE_BATCH = 10


class BaseQueueClient(metaclass=ABCMeta):
    """This class outlines the queue client functions, to be satisfied by all
    implementing queue clients.

    Timeouts and cancellation of the underlying calls are the concern of
    each implementation; callers never retry through this interface.
    """

    provider: str

    def __init__(self, name: str, conn_info: dict[str, Any]) -> None:
        self.name = name
        self.conn_info = conn_info

    def send(self, queue_url: str, body: Any, group_id: Optional[str] = None) -> str:
        """Send a message to a queue.

        Args:
            queue_url (str): The queue to send the message to
            body: The message payload
            group_id (str, optional): Message group, for FIFO queues

        Returns:
            str: The identifier of the message

        Raises:
            ValidationError: If body is empty
        """
        if body is None or body == "" or body == {}:
            raise ValidationError({"body": ["Message body cannot be empty"]})

        return self._send(queue_url, body, group_id)

    def receive(self, queue_url: str, max_messages: int = 1) -> list[Message]:
        """Receive up to `max_messages` messages from a queue.

        Each returned message carries a receipt handle unique to this delivery.
        """
        if not 1 <= max_messages <= MAX_RECEIVE_BATCH:
            raise ValidationError(
                {
                    "max_messages": [
                        f"must be between 1 and {MAX_RECEIVE_BATCH}, got {max_messages}"
                    ]
                }
            )

        return self._receive(queue_url, max_messages)

    def delete(self, queue_url: str, receipt_handle: str) -> None:
        """Delete one delivered message from a queue.

        Args:
            queue_url (str): The queue the message was received from
            receipt_handle (str): The receipt handle of the delivery

        Raises:
            DeleteFailedError: If the queue did not delete the message
        """
        if not receipt_handle:
            raise ValidationError({"receipt_handle": ["is required"]})

        try:
            self._delete(queue_url, receipt_handle)
        except AckTrackException:
            raise
        except Exception as exc:
            logger.warning(
                f"Queue client {self.name}: failed to delete `{receipt_handle}` "
                f"from {queue_url}: {exc}"
            )
            raise DeleteFailedError(
                f"Failed to delete message from {queue_url}: {exc}",
                queue_url=queue_url,
                receipt_handle=receipt_handle,
            ) from exc

    def ping(self) -> bool:
        """Test queue connectivity.

        Returns:
            bool: True if the queue is reachable and responsive, False otherwise
        """
        try:
            return self._ping()
        except Exception as exc:
            logger.debug(f"Ping failed for queue client {self.name}: {exc}")
            return False

    @abstractmethod
    def _send(self, queue_url: str, body: Any, group_id: Optional[str]) -> str:
        """Overidden method to send a message to the queue"""

    @abstractmethod
    def _receive(self, queue_url: str, max_messages: int) -> list[Message]:
        """Overidden method to receive messages from the queue"""

    @abstractmethod
    def _delete(self, queue_url: str, receipt_handle: str) -> None:
        """Overidden method to delete a delivered message from the queue"""

    @abstractmethod
    def _ping(self) -> bool:
        """Test basic connectivity to the queue"""

    @abstractmethod
    def _data_reset(self) -> None:
        """Flush all data in the queue client.

        Useful for clearing queues and running tests.
        """
