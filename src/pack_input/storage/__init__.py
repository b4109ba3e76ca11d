"""Storage system factory.

Provides get_storage_system() / set_storage_system() to swap the transport.
FakeStorageSystem is the default.
"""

from pack_input.storage.fake_adapter import FakeStorageSystem
from pack_input.storage.port import StorageSystem

_current_storage_system: StorageSystem | None = None


def get_storage_system() -> StorageSystem:
    """Return the current storage system. Defaults to FakeStorageSystem."""
    global _current_storage_system
    if _current_storage_system is None:
        _current_storage_system = FakeStorageSystem()
    return _current_storage_system


def set_storage_system(storage_system: StorageSystem) -> None:
    """Override the active storage system (useful for tests)."""
    global _current_storage_system
    _current_storage_system = storage_system


def reset_storage_system() -> None:
    """Reset to the default storage system."""
    global _current_storage_system
    _current_storage_system = None
