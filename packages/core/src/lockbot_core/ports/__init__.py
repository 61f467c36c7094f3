from .locking import ILockStrategy
from .store import ILockQueueStore
from .token_authorizer import ITokenAuthorizer

__all__ = [
    "ILockQueueStore",
    "ILockStrategy",
    "ITokenAuthorizer",
]
