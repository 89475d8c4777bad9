from __future__ import annotations

import logging
from typing import Any, Optional, Union

from acktrack.acknowledger import _UNSET, UnorderedAcknowledger
from acktrack.config import Config
from acktrack.exceptions import SessionClosedError
from acktrack.message import Message, MessageIdentifier
from acktrack.port.queue import BaseQueueClient
from acktrack.utils.logging import configure_logging

logger = logging.getLogger(__name__)


class Session:
    """A consumer session over one queue client.

    The session owns a single `UnorderedAcknowledger`. Every message received
    through the session is tracked until it is acknowledged, and once the
    session is closed no further message can be received or acknowledged.

    A session and the messages it hands out must be used from one thread at
    a time.

    Usage::

        with Session(queue_client, max_unacknowledged_messages=1000) as session:
            for message in session.receive(queue_url, max_messages=10):
                process(message)
                message.acknowledge()
    """

    def __init__(
        self,
        queue_client: BaseQueueClient,
        max_unacknowledged_messages: Optional[int] = _UNSET,
        config: Optional[Config] = None,
    ) -> None:
        self.queue_client = queue_client
        self._closed = False

        if config is not None:
            if config.log_level:
                configure_logging(level=config.log_level)
            if max_unacknowledged_messages is _UNSET:
                max_unacknowledged_messages = config.max_unacknowledged_messages

        self.acknowledger = UnorderedAcknowledger(
            queue_client, self, max_unacknowledged_messages
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def check_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Session is closed")

    def receive(self, queue_url: str, max_messages: int = 1) -> list[Message]:
        """Receive messages, and track each of them as unacknowledged"""
        self.check_open()

        messages = self.queue_client.receive(queue_url, max_messages)
        for message in messages:
            message.bind(self.acknowledger)
            self.acknowledger.notify_message_received(message)

        logger.debug(f"Received {len(messages)} messages from {queue_url}")
        return messages

    def acknowledge(self, message: Union[Message, MessageIdentifier]) -> None:
        self.acknowledger.acknowledge(message)

    def unacknowledged_messages(self) -> list[MessageIdentifier]:
        return self.acknowledger.get_unack_messages()

    def recover(self) -> list[MessageIdentifier]:
        """Abandon all unacknowledged messages.

        The queue redelivers them once their visibility timeout lapses.

        Returns:
            list[MessageIdentifier]: The messages that were abandoned
        """
        self.check_open()

        abandoned = self.acknowledger.get_unack_messages()
        self.acknowledger.forget_unack_messages()

        logger.debug(f"Recovered session, abandoned {len(abandoned)} messages")
        return abandoned

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        self.acknowledger.forget_unack_messages()
        logger.debug("Session closed")

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
