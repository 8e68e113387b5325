"""
Datastore Contract - Common interface for every backing store
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict
import logging

from cassandra import AlreadyExists

logger = logging.getLogger(__name__)

# MongoDB server error codes: NamespaceExists, IndexOptionsConflict, IndexKeySpecsConflict
_MONGO_EXISTS_CODES = {48, 85, 86}

_EXISTS_MARKERS = (
    "already exists",
    "already an object named",
    "ora-00955",
    "ora-01430",
    "cannot add existing",
    "name is already used by an existing object",
)


class DatastoreUnavailableError(RuntimeError):
    """Raised when a store is used before it connected (or after it failed to)"""

    def __init__(self, name: str, reason: str = "not connected"):
        self.name = name
        self.reason = reason
        super().__init__(f"{name} is unavailable ({reason})")


def is_already_exists(exc: BaseException) -> bool:
    """True when exc reports a schema object that is already there"""
    if isinstance(exc, AlreadyExists):
        return True
    if getattr(exc, "code", None) in _MONGO_EXISTS_CODES:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _EXISTS_MARKERS)


@contextmanager
def ignore_already_exists(what: str):
    """
    Swallow "already exists" failures raised while creating a schema object.

    Repeated or concurrent bootstraps race on the same DDL; the loser must
    not fail. Any other error propagates.
    """
    try:
        yield
    except Exception as e:
        if not is_already_exists(e):
            raise
        logger.debug(f"{what} already exists, skipping")


class Datastore(ABC):
    """
    Abstract base class for the four datastore integrations.

    Lifecycle: connect -> ensure_schema -> seed_if_empty, driven by the
    startup orchestrator. Domain methods call _require() first so a store
    that never came up fails fast with DatastoreUnavailableError.
    """

    name: str = "base"

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether a live client/pool is held"""

    @abstractmethod
    async def connect(self) -> None:
        """Open the client/pool and verify it answers"""

    @abstractmethod
    async def ensure_schema(self) -> None:
        """Create tables/collections/indexes if missing; safe to repeat"""

    @abstractmethod
    async def seed_if_empty(self) -> int:
        """Insert sample rows only into empty targets; returns rows inserted"""

    @abstractmethod
    async def ping(self) -> Dict[str, Any]:
        """Trivial liveness query; returns optional details"""

    @abstractmethod
    async def close(self) -> None:
        """Release the client/pool"""

    def _require(self) -> None:
        if not self.is_connected:
            raise DatastoreUnavailableError(self.name)

    def __repr__(self):
        state = "connected" if self.is_connected else "disconnected"
        return f"<{self.__class__.__name__} {self.name} ({state})>"
