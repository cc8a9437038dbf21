"""Pilot onboarding — registration, approval, resubmission and deactivation."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.pilot.pilot import Pilot, VehicleDetails

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Pilot")
class RegisterPilot:
    name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    email = String(max_length=254)
    license_number = String(required=True, max_length=30)
    vehicle_number = String(required=True, max_length=20)
    vehicle_type = String(required=True, max_length=20)
    capacity_tonnes = Float(required=True)


@dispatch.command(part_of="Pilot")
class ApprovePilot:
    pilot_id = Identifier(required=True)


@dispatch.command(part_of="Pilot")
class ResubmitPilotProfile:
    pilot_id = Identifier(required=True)
    name = String(max_length=100)
    phone = String(max_length=20)
    email = String(max_length=254)
    license_number = String(max_length=30)
    vehicle_number = String(max_length=20)
    vehicle_type = String(max_length=20)
    capacity_tonnes = Float()


@dispatch.command(part_of="Pilot")
class DeactivatePilot:
    pilot_id = Identifier(required=True)
    reason = String(max_length=500)


@dispatch.command_handler(part_of=Pilot)
class PilotRegistrationHandler:
    @handle(RegisterPilot)
    def register_pilot(self, command):
        pilot = Pilot.register(
            name=command.name,
            phone=command.phone,
            email=command.email,
            license_number=command.license_number,
            vehicle=VehicleDetails(
                registration_number=command.vehicle_number.upper(),
                vehicle_type=command.vehicle_type,
                capacity_tonnes=command.capacity_tonnes,
            ),
        )
        current_domain.repository_for(Pilot).add(pilot)
        logger.info("Pilot registered", pilot_id=str(pilot.id), vehicle_type=command.vehicle_type)
        return str(pilot.id)

    @handle(ApprovePilot)
    def approve_pilot(self, command):
        repo = current_domain.repository_for(Pilot)
        pilot = repo.load(command.pilot_id)
        pilot.approve()
        repo.add(pilot)

    @handle(ResubmitPilotProfile)
    def resubmit_profile(self, command):
        repo = current_domain.repository_for(Pilot)
        pilot = repo.load(command.pilot_id)

        vehicle = None
        if command.vehicle_number or command.vehicle_type or command.capacity_tonnes:
            vehicle = VehicleDetails(
                registration_number=(command.vehicle_number or pilot.vehicle.registration_number).upper(),
                vehicle_type=command.vehicle_type or pilot.vehicle.vehicle_type,
                capacity_tonnes=command.capacity_tonnes or pilot.vehicle.capacity_tonnes,
            )

        pilot.resubmit_profile(
            name=command.name,
            phone=command.phone,
            email=command.email,
            license_number=command.license_number,
            vehicle=vehicle,
        )
        repo.add(pilot)

    @handle(DeactivatePilot)
    def deactivate_pilot(self, command):
        repo = current_domain.repository_for(Pilot)
        pilot = repo.load(command.pilot_id)
        pilot.deactivate(command.reason)
        repo.add(pilot)
        logger.info("Pilot deactivated", pilot_id=str(pilot.id), reason=command.reason)
