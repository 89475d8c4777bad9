import json
import logging
import time
from typing import Any, Optional

import redis

from acktrack.exceptions import ConfigurationError, QueueError
from acktrack.message import Message
from acktrack.port.queue import BaseQueueClient

logger = logging.getLogger(__name__)

# Constants
DATA_FIELD = "data"
GROUP_FIELD = "group_id"
STREAM_ID_START = "0"
CONSUMER_GROUP_SEPARATOR = ":"
NEW_MESSAGES_ID = ">"
DEFAULT_CONSUMER_GROUP = "acktrack"


class RedisQueueClient(BaseQueueClient):
    """Redis Streams as the backing queue.

    Each queue url is a stream key, read through a consumer group. The
    receipt handle of a delivery is the stream entry id. Deleting a message
    acknowledges the entry in the consumer group and removes it from the
    stream.
    """

    provider = "redis"

    def __init__(self, name: str, conn_info: dict[str, Any]) -> None:
        super().__init__(name, conn_info)

        if not conn_info.get("URI"):
            raise ConfigurationError(f"Queue client `{name}` needs a `URI`")

        self.redis_instance = redis.Redis.from_url(conn_info["URI"])
        self._consumer_group = conn_info.get("consumer_group", DEFAULT_CONSUMER_GROUP)
        self._consumer_name = f"consumer-{int(time.time() * 1000)}"
        self._created_groups_set = set()

    def _send(self, queue_url: str, body: Any, group_id: Optional[str]) -> str:
        """Append a message to the stream using XADD"""
        fields = {DATA_FIELD: json.dumps(body)}
        if group_id:
            fields[GROUP_FIELD] = group_id

        try:
            stream_id = self.redis_instance.xadd(queue_url, fields)
        except redis.RedisError as exc:
            raise QueueError(f"Failed to send message to {queue_url}: {exc}") from exc

        return self._decode_if_bytes(stream_id)

    def _receive(self, queue_url: str, max_messages: int) -> list[Message]:
        """Read new messages from the stream through the consumer group"""
        self._ensure_group(queue_url)

        try:
            response = self.redis_instance.xreadgroup(
                self._consumer_group,
                self._consumer_name,
                {queue_url: NEW_MESSAGES_ID},
                count=max_messages,
            )
        except redis.RedisError as exc:
            raise QueueError(
                f"Failed to receive messages from {queue_url}: {exc}"
            ) from exc

        if not response:
            return []

        messages = []
        for _, entries in response:
            for entry_id, fields in entries or []:
                messages.append(self._to_message(queue_url, entry_id, fields or {}))

        return messages

    def _delete(self, queue_url: str, receipt_handle: str) -> None:
        """Acknowledge and remove the stream entry using XACK and XDEL"""
        pipeline = self.redis_instance.pipeline()
        pipeline.xack(queue_url, self._consumer_group, receipt_handle)
        pipeline.xdel(queue_url, receipt_handle)
        pipeline.execute()

    def _ping(self) -> bool:
        return bool(self.redis_instance.ping())

    def _data_reset(self) -> None:
        """Flush all data in Redis instance for testing"""
        self.redis_instance.flushall()
        self._created_groups_set.clear()

    def _ensure_group(self, stream: str) -> None:
        """Create the consumer group if it doesn't exist"""
        group_key = f"{stream}{CONSUMER_GROUP_SEPARATOR}{self._consumer_group}"

        if group_key in self._created_groups_set:
            return

        try:
            self.redis_instance.xgroup_create(
                stream, self._consumer_group, id=STREAM_ID_START, mkstream=True
            )
            logger.debug(
                f"Created consumer group {self._consumer_group} for stream {stream}"
            )
            self._created_groups_set.add(group_key)
        except redis.ResponseError as e:
            if "BUSYGROUP" in str(e):
                self._created_groups_set.add(group_key)
            else:
                logger.warning(
                    f"Failed to create consumer group {self._consumer_group} "
                    f"for stream {stream}: {e}"
                )

    def _to_message(self, queue_url: str, entry_id, fields: dict) -> Message:
        decoded = {
            self._decode_if_bytes(key): self._decode_if_bytes(value)
            for key, value in fields.items()
        }

        body = None
        if DATA_FIELD in decoded:
            try:
                body = json.loads(decoded[DATA_FIELD])
            except json.JSONDecodeError as e:
                logger.error(f"Failed to deserialize message: {e}")
                body = decoded[DATA_FIELD]

        receipt_handle = self._decode_if_bytes(entry_id)
        return Message(
            queue_url=queue_url,
            receipt_handle=receipt_handle,
            body=body,
            message_id=receipt_handle,
            group_id=decoded.get(GROUP_FIELD),
        )

    def _decode_if_bytes(self, value) -> str:
        """Convert bytes to string if needed, otherwise return as string"""
        if isinstance(value, bytes):
            return value.decode()
        return str(value)
