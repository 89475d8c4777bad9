from acktrack.port.queue import BaseQueueClient

__all__ = ("BaseQueueClient",)
