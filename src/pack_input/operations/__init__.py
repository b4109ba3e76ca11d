"""Storage operations factory.

Bundles the connection, initiated input and infeed input around one storage
system. get_operations() builds them on first use from the current storage
system and the operator settings in the environment.
"""

from dataclasses import dataclass

from pack_input.decision.configuration import load_configuration
from pack_input.operations.connection import InputResponder, StorageConnection
from pack_input.operations.infeed import InfeedInputController, next_serial_number
from pack_input.operations.initiated import InitiatedInputRegistry, InputInitiator
from pack_input.storage import get_storage_system
from pack_input.storage.port import StorageSystem


@dataclass
class StorageOperations:
    storage_system: StorageSystem
    responder: InputResponder
    connection: StorageConnection
    initiator: InputInitiator
    infeed: InfeedInputController

    @classmethod
    def build(cls, storage_system: StorageSystem, responder: InputResponder | None = None) -> "StorageOperations":
        responder = responder if responder is not None else InputResponder(load_configuration())
        return cls(
            storage_system=storage_system,
            responder=responder,
            connection=StorageConnection(storage_system, responder),
            initiator=InputInitiator(storage_system),
            infeed=InfeedInputController(storage_system),
        )


_current_operations: StorageOperations | None = None


def get_operations() -> StorageOperations:
    """Return the current storage operations, built around get_storage_system()."""
    global _current_operations
    if _current_operations is None:
        _current_operations = StorageOperations.build(get_storage_system())
    return _current_operations


def reset_operations() -> None:
    """Close the connection and drop the current storage operations."""
    global _current_operations
    if _current_operations is not None:
        _current_operations.connection.close()
    _current_operations = None


__all__ = [
    "InfeedInputController",
    "InitiatedInputRegistry",
    "InputInitiator",
    "InputResponder",
    "StorageConnection",
    "StorageOperations",
    "get_operations",
    "next_serial_number",
    "reset_operations",
]
