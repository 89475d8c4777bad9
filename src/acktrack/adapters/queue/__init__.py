from __future__ import annotations

import collections.abc
import importlib
import logging
from typing import Iterator

from acktrack.config import Config
from acktrack.exceptions import ConfigurationError
from acktrack.port.queue import BaseQueueClient

logger = logging.getLogger(__name__)


QUEUE_PROVIDERS = {
    "memory": "acktrack.adapters.queue.memory.MemoryQueueClient",
    "redis": "acktrack.adapters.queue.redis.RedisQueueClient",
}


class QueueClients(collections.abc.MutableMapping[str, BaseQueueClient]):
    """Queue clients configured under `queue_clients`, keyed by name.

    Clients are initialized on first access.
    """

    def __init__(self, config: Config):
        self.config = config
        self._queue_clients: dict[str, BaseQueueClient] | None = None

    def __getitem__(self, key: str) -> BaseQueueClient:
        if self._queue_clients is None:
            self._initialize()

        try:
            return self._queue_clients[key]
        except KeyError as exc:
            raise ConfigurationError(
                f"Queue client `{key}` has not been configured."
            ) from exc

    def __iter__(self) -> Iterator[str]:
        if self._queue_clients is None:
            self._initialize()
        return iter(self._queue_clients)

    def __len__(self) -> int:
        if self._queue_clients is None:
            self._initialize()
        return len(self._queue_clients)

    def __setitem__(self, key: str, value: BaseQueueClient) -> None:
        if self._queue_clients is None:
            self._initialize()
        self._queue_clients[key] = value

    def __delitem__(self, key: str) -> None:
        if self._queue_clients and key in self._queue_clients:
            del self._queue_clients[key]

    def _initialize(self) -> None:
        """Read config and initialize queue clients"""
        configured_clients = self.config.get("queue_clients")
        client_objects = {}

        logger.debug("Initializing queue clients...")
        if configured_clients and isinstance(configured_clients, dict):
            if "default" not in configured_clients:
                raise ConfigurationError("You must define a 'default' queue client")

            for client_name, conn_info in configured_clients.items():
                provider = conn_info.get("provider")
                if provider not in QUEUE_PROVIDERS:
                    raise ConfigurationError(
                        f"Unknown queue client provider `{provider}` for `{client_name}`"
                    )

                client_module, client_class = QUEUE_PROVIDERS[provider].rsplit(
                    ".", maxsplit=1
                )
                client_cls = getattr(importlib.import_module(client_module), client_class)
                client_objects[client_name] = client_cls(client_name, conn_info)
        else:
            raise ConfigurationError("Configure at least one queue client")

        self._queue_clients = client_objects
