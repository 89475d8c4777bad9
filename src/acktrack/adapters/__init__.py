# Adapters
from acktrack.adapters.queue import QueueClients
from acktrack.adapters.queue.memory import MemoryQueueClient

__all__ = (
    "MemoryQueueClient",
    "QueueClients",
)
