"""Logistics bounded context: Shipment Lifecycle and Tracking.

Coordinates a physical shipment from booking through pickup, hub transit and
delivery, along with the driver assignments and payments bound to it. Uses
CQRS (not event sourcing): the Shipment aggregate is the single source of
truth for status, and its tracking ledger is an append-only child collection.
"""

from protean.domain import Domain

from logistics.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
logistics = Domain(name="logistics")
