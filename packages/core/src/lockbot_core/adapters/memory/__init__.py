from .locking import InMemoryLockStrategy
from .queue_store import InMemoryLockQueueStore
from .token_authorizer import InMemoryTokenAuthorizer

__all__ = [
    "InMemoryLockQueueStore",
    "InMemoryLockStrategy",
    "InMemoryTokenAuthorizer",
]
