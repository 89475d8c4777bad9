__version__ = "0.1.0"

from .acknowledger import BaseAcknowledger, UnorderedAcknowledger
from .config import Config, max_unacknowledged_messages, parse_max_unacknowledged
from .exceptions import (
    AckTrackException,
    ConfigurationError,
    DeleteFailedError,
    QueueError,
    SessionClosedError,
    ValidationError,
)
from .message import Message, MessageIdentifier
from .session import Session
from .unacked import UnacknowledgedSet, evict_if_over_capacity

__all__ = [
    "AckTrackException",
    "BaseAcknowledger",
    "Config",
    "ConfigurationError",
    "DeleteFailedError",
    "Message",
    "MessageIdentifier",
    "QueueError",
    "Session",
    "SessionClosedError",
    "UnacknowledgedSet",
    "UnorderedAcknowledger",
    "ValidationError",
    "evict_if_over_capacity",
    "max_unacknowledged_messages",
    "parse_max_unacknowledged",
]
