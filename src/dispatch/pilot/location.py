"""Pilot location reports.

Each report overwrites the previous fix; there is no location history.
"""

from protean import handle
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.pilot.pilot import Pilot
from dispatch.pricing import validate_coordinates


@dispatch.command(part_of="Pilot")
class ReportLocation:
    pilot_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)


@dispatch.command_handler(part_of=Pilot)
class PilotLocationHandler:
    @handle(ReportLocation)
    def report_location(self, command):
        latitude, longitude = validate_coordinates(command.latitude, command.longitude)
        repo = current_domain.repository_for(Pilot)
        pilot = repo.load(command.pilot_id)
        pilot.report_location(latitude, longitude)
        repo.add(pilot)
