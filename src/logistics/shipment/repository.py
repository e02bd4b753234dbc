"""Repository for the Shipment aggregate."""

from protean.exceptions import ObjectNotFoundError

from logistics.domain import logistics
from logistics.shared.errors import NotFound
from logistics.shipment.shipment import Shipment


@logistics.repository(part_of=Shipment)
class ShipmentRepository:
    """Adds lookups by the public identifiers a shipment is known by."""

    def get_shipment(self, shipment_id: str) -> Shipment:
        try:
            return self.get(shipment_id)
        except ObjectNotFoundError:
            raise NotFound("Shipment not found") from None

    def find_by_tracking_number(self, tracking_number: str) -> Shipment | None:
        return self.query.filter(tracking_number=tracking_number).all().first

    def tracking_number_taken(self, tracking_number: str) -> bool:
        return self.query.filter(tracking_number=tracking_number).all().total > 0

    def master_tracking_id_taken(self, master_tracking_id: str) -> bool:
        return self.query.filter(master_tracking_id=master_tracking_id).all().total > 0

    def for_actor(self, field: str, actor_id: str) -> list[Shipment]:
        """Shipments where ``field`` (sender_id, agent_id, ...) is the actor."""
        return self.query.filter(**{field: actor_id}).order_by("-created_at").all().items
