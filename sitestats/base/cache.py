# ==============================================================================
# Key-Value Store Abstract Base Class
# ==============================================================================
"""
Abstract interface for the durable key-value store behind the event store.

Besides plain string keys, the interface exposes record collections: a named
collection maps record ids to serialized records. Each record is written
individually, so two writers adding different records to the same collection
never overwrite each other.

Implementations: Valkey, Redis, etc.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Optional


class KeyValueStore(ABC):
    """
    Durable key-value storage for serialized analytics records.

    All values are strings. Serialization is the caller's concern.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Get a value.

        Args:
            key: Store key

        Returns:
            Stored string, or None if not found
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str, only_new: bool = False) -> bool:
        """
        Set a value.

        Args:
            key: Store key
            value: String to store
            only_new: Leave an existing value untouched (SET NX)

        Returns:
            True if the value was written
        """
        ...

    @abstractmethod
    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a pattern.

        Args:
            pattern: Pattern to match (e.g., "sitestats:*")

        Returns:
            Count of keys deleted
        """
        ...

    @abstractmethod
    def put_record(self, collection: str, record_id: str, value: str, only_new: bool = False) -> bool:
        """
        Write one record of a collection.

        Args:
            collection: Collection key
            record_id: Record identifier within the collection
            value: Serialized record
            only_new: When True, leave an existing record untouched

        Returns:
            True if the record was written
        """
        ...

    @abstractmethod
    def get_records(self, collection: str) -> dict[str, str]:
        """
        Read every record of a collection.

        Args:
            collection: Collection key

        Returns:
            Dict mapping record id to serialized record (empty if missing)
        """
        ...

    @abstractmethod
    def update_record(
        self,
        collection: str,
        record_id: str,
        updater: Callable[[str], str],
    ) -> Optional[str]:
        """
        Atomically replace one record with ``updater(current)``.

        Args:
            collection: Collection key
            record_id: Record identifier within the collection
            updater: Function mapping the current record to its replacement

        Returns:
            The new record, or None if the record does not exist
        """
        ...

    @abstractmethod
    def size_of(self, pattern: str) -> int:
        """
        Total bytes of the values held under keys matching a pattern.

        Args:
            pattern: Pattern to match

        Returns:
            Size in bytes of the stored (UTF-8) values
        """
        ...
