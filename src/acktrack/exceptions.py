"""
Custom acktrack exception classes
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class AckTrackException(Exception):
    """Base class for all Exceptions raised within acktrack"""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args)

        self.extra_info = kwargs.get("extra_info", None)

    def __reduce__(self) -> tuple[Any, tuple[Any, ...], dict[str, Any]]:
        # Attributes set in `__init__`, like `extra_info`, travel as state
        return (self.__class__, self.args, self.__dict__)


class AckTrackExceptionWithMessage(AckTrackException):
    def __init__(
        self, messages: dict[str, list[str]], traceback: Optional[str] = None, **kwargs: Any
    ) -> None:
        logger.debug(f"Exception:: {messages}")

        self.messages = messages
        self.traceback = traceback

        super().__init__(**kwargs)

    def __str__(self) -> str:
        return f"{dict(self.messages)}"

    def __reduce__(self) -> tuple[Any, tuple[Any, ...], dict[str, Any]]:
        return (self.__class__, (self.messages,), self.__dict__)


class ConfigurationError(AckTrackException):
    """Improper Configuration encountered like:
    * A mandatory queue client is not defined
    * An unknown queue client provider
    * An environment variable referenced in config is not set
    """


class InvalidOperationError(AckTrackException):
    """Operation being performed is not permitted"""


class ValidationError(AckTrackExceptionWithMessage):
    """Raised when a message or a queue client argument fails validation.

    :param messages: dictionary of error messages where key is field name
        and value is a list of errors
    """


class SessionClosedError(AckTrackException):
    """Raised when an operation is attempted on a session that is no longer open"""


class QueueError(AckTrackException):
    """Raised when the backing queue rejects or fails an operation"""


class DeleteFailedError(QueueError):
    """Raised when deleting (acknowledging) a message on the queue fails.

    The message stays tracked as unacknowledged, so that it can be retried.
    """

    def __init__(
        self,
        *args: Any,
        queue_url: Optional[str] = None,
        receipt_handle: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)

        self.queue_url = queue_url
        self.receipt_handle = receipt_handle
