from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Union

from acktrack.exceptions import InvalidOperationError, ValidationError

if TYPE_CHECKING:
    from acktrack.acknowledger import BaseAcknowledger

logger = logging.getLogger(__name__)


@dataclass
class Message:
    """A message consumed from a queue and handed over to the application.

    A message received through a `Session` is bound to the session's
    acknowledger, so that it can be acknowledged directly with
    `message.acknowledge()`.
    """

    queue_url: str
    receipt_handle: str
    body: Any = None
    message_id: Optional[str] = None
    group_id: Optional[str] = None
    sequence_number: Optional[str] = None
    attributes: dict[str, Any] = field(default_factory=dict)

    _acknowledger: Optional["BaseAcknowledger"] = field(
        default=None, init=False, repr=False, compare=False
    )

    def bind(self, acknowledger: "BaseAcknowledger") -> None:
        self._acknowledger = acknowledger

    def acknowledge(self) -> None:
        if self._acknowledger is None:
            raise InvalidOperationError(
                f"Message `{self.message_id or self.receipt_handle}` was not "
                "received through a session and cannot acknowledge itself"
            )

        self._acknowledger.acknowledge(self)


@dataclass(frozen=True)
class MessageIdentifier:
    """Identifies one delivery of a consumed message.

    `group_id` and `sequence_number` are only present for messages
    consumed from FIFO queues.
    """

    queue_url: str
    receipt_handle: str
    group_id: Optional[str] = None
    sequence_number: Optional[str] = None

    def __post_init__(self) -> None:
        errors = {}
        if not self.queue_url:
            errors["queue_url"] = ["is required"]
        if not self.receipt_handle:
            errors["receipt_handle"] = ["is required"]

        if errors:
            raise ValidationError(errors)

    @classmethod
    def from_message(cls, message: Any) -> "MessageIdentifier":
        """Build an identifier from a consumed message.

        Accepts a `Message`, or any object exposing `queue_url` and
        `receipt_handle` (and optionally `group_id` and `sequence_number`).
        """
        return cls(
            queue_url=getattr(message, "queue_url", None),
            receipt_handle=getattr(message, "receipt_handle", None),
            group_id=getattr(message, "group_id", None),
            sequence_number=getattr(message, "sequence_number", None),
        )


def to_identifier(
    identifier_or_message: Union[MessageIdentifier, Message, Any],
) -> MessageIdentifier:
    """Return the identifier for a message, or the identifier itself if one is given"""
    if isinstance(identifier_or_message, MessageIdentifier):
        return identifier_or_message

    return MessageIdentifier.from_message(identifier_or_message)
