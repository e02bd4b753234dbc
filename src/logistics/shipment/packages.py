"""Package management inside a shipment: commands and handler.

Packages are added, edited and removed only before pickup. Photos can be
attached at any point of the journey.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shared.access import Actor, Capability, authorize
from logistics.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Shipment")
class AddPackage:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    package = Text(required=True)  # JSON dict of package attributes


@logistics.command(part_of="Shipment")
class UpdatePackage:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    package_id = Identifier(required=True)
    changes = Text(required=True)  # JSON dict of changed attributes


@logistics.command(part_of="Shipment")
class RemovePackage:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    package_id = Identifier(required=True)


@logistics.command(part_of="Shipment")
class AddPackagePhoto:
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    shipment_id = Identifier(required=True)
    package_id = Identifier(required=True)
    photo = String(required=True, max_length=500)


def _load(raw) -> dict:
    return json.loads(raw) if isinstance(raw, str) else dict(raw)


@logistics.command_handler(part_of=Shipment)
class PackageHandler:
    @handle(AddPackage)
    def add_package(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.EDIT_PACKAGE, shipment)

        package = shipment.add_package(_load(command.package), actor.id)
        repo.add(shipment)
        logger.info(
            "Package added",
            shipment_id=str(shipment.id),
            sub_tracking_id=package.sub_tracking_id,
        )
        return str(package.id)

    @handle(UpdatePackage)
    def update_package(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.EDIT_PACKAGE, shipment)

        package = shipment.update_package(command.package_id, _load(command.changes), actor.id)
        repo.add(shipment)
        return str(package.id)

    @handle(RemovePackage)
    def remove_package(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.DELETE_PACKAGE, shipment)

        shipment.remove_package(command.package_id, actor.id)
        repo.add(shipment)
        logger.info("Package removed", shipment_id=str(shipment.id), package_id=command.package_id)

    @handle(AddPackagePhoto)
    def add_package_photo(self, command):
        actor = Actor.from_command(command)
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        authorize(actor, Capability.ADD_PHOTO, shipment)

        package = shipment.add_package_photo(command.package_id, command.photo, actor.id)
        repo.add(shipment)
        return len(package.photo_list())
