"""Pack input bounded context: input decisions and response overrides.

Decides, for every pack a storage system asks to input, whether it is
accepted, rejected or accepted for the fridge, and lets an operator override
individual fields of the response sent back.
"""

from protean.domain import Domain

from pack_input.utils.logging import configure_logging, get_logger

configure_logging(log_file_prefix="pack_input")

logger = get_logger(__name__)

# Domain Composition Root
pack_input = Domain(name="pack_input")
