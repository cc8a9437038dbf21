"""Pilot aggregate — a registered delivery agent and their availability.

A pilot is available for new orders only while approved and not carrying
an order. Availability is flipped by the claim protocol through a
conditional write in the repository; counters and ratings change only
when a delivery completes.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    Identifier,
    Integer,
    String,
    ValueObject,
)
from protean.utils.query import Q

from dispatch.domain import dispatch
from dispatch.errors import AgentUnavailable, NotFound
from dispatch.pilot.events import (
    PilotApproved,
    PilotDeactivated,
    PilotProfileResubmitted,
    PilotRegistered,
    PilotReleased,
)


class PilotStatus(Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    DEACTIVATED = "deactivated"


class VehicleType(Enum):
    TRUCK = "truck"
    MINI_TRUCK = "mini_truck"
    PICKUP = "pickup"
    TRACTOR = "tractor"
    TRAILER = "trailer"


@dispatch.value_object(part_of="Pilot")
class VehicleDetails:
    registration_number = String(required=True, max_length=20)
    vehicle_type = String(required=True, max_length=20, choices=VehicleType)
    capacity_tonnes = Float(required=True, min_value=1.0, max_value=50.0)


@dispatch.value_object(part_of="Pilot")
class LocationFix:
    """Last reported position of a pilot."""

    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    recorded_at = DateTime(required=True)


@dispatch.aggregate
class Pilot:
    name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    email = String(max_length=254)
    license_number = String(required=True, max_length=30)
    vehicle = ValueObject(VehicleDetails, required=True)
    status = String(
        max_length=20,
        choices=PilotStatus,
        default=PilotStatus.PENDING_APPROVAL.value,
    )
    is_available = Boolean(default=False)
    current_order_id = Identifier()
    current_location = ValueObject(LocationFix)
    total_deliveries = Integer(default=0, min_value=0)
    rating_average = Float(default=0.0, min_value=0.0, max_value=5.0)
    rating_count = Integer(default=0, min_value=0)
    registered_at = DateTime()
    approved_at = DateTime()

    @invariant.post
    def carrying_an_order_means_unavailable(self):
        if self.current_order_id and self.is_available:
            raise ValidationError({"is_available": ["A pilot carrying an order cannot be available"]})

    @invariant.post
    def only_approved_pilots_are_available(self):
        if self.is_available and self.status != PilotStatus.APPROVED.value:
            raise ValidationError({"is_available": ["Only approved pilots can be available"]})

    @classmethod
    def register(
        cls,
        name: str,
        phone: str,
        license_number: str,
        vehicle: VehicleDetails,
        email: str | None = None,
    ):
        now = datetime.now(UTC)
        pilot = cls(
            name=name,
            phone=phone,
            email=email,
            license_number=license_number,
            vehicle=vehicle,
            status=PilotStatus.PENDING_APPROVAL.value,
            is_available=False,
            registered_at=now,
        )
        pilot.raise_(
            PilotRegistered(
                pilot_id=str(pilot.id),
                name=name,
                phone=phone,
                vehicle_number=vehicle.registration_number,
                vehicle_type=vehicle.vehicle_type,
                registered_at=now,
            )
        )
        return pilot

    @property
    def can_take_orders(self) -> bool:
        return self.status == PilotStatus.APPROVED.value and bool(self.is_available) and not self.current_order_id

    def approve(self) -> None:
        if self.status != PilotStatus.PENDING_APPROVAL.value:
            raise ValidationError({"status": [f"Cannot approve a pilot in {self.status} state"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = PilotStatus.APPROVED.value
            self.is_available = True
            self.approved_at = now
        self.raise_(PilotApproved(pilot_id=str(self.id), approved_at=now))

    def deactivate(self, reason: str | None = None) -> None:
        if self.current_order_id:
            raise AgentUnavailable(str(self.id), "Pilot cannot be deactivated while carrying an order")

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = PilotStatus.DEACTIVATED.value
            self.is_available = False
        self.raise_(PilotDeactivated(pilot_id=str(self.id), reason=reason, deactivated_at=now))

    def resubmit_profile(
        self,
        name: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        license_number: str | None = None,
        vehicle: VehicleDetails | None = None,
    ) -> None:
        """Apply the pilot's corrected profile and send it back for approval."""
        if self.current_order_id:
            raise AgentUnavailable(str(self.id), "Profile cannot change while carrying an order")
        if self.status == PilotStatus.DEACTIVATED.value:
            raise ValidationError({"status": ["A deactivated pilot cannot resubmit their profile"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.name = name or self.name
            self.phone = phone or self.phone
            self.email = email or self.email
            self.license_number = license_number or self.license_number
            self.vehicle = vehicle or self.vehicle
            self.status = PilotStatus.PENDING_APPROVAL.value
            self.is_available = False
            self.approved_at = None
        self.raise_(PilotProfileResubmitted(pilot_id=str(self.id), resubmitted_at=now))

    def take_order(self, order_id: str) -> None:
        """Mirror of the repository reservation on the loaded aggregate."""
        with atomic_change(self):
            self.is_available = False
            self.current_order_id = order_id

    def report_location(self, latitude: float, longitude: float) -> None:
        self.current_location = LocationFix(
            latitude=latitude,
            longitude=longitude,
            recorded_at=datetime.now(UTC),
        )

    def release(self, delivered: bool = False, rating: int | None = None) -> None:
        """Free the pilot after their order was delivered or cancelled.

        Completed deliveries always count; the rating is folded into the
        running mean only when the customer gave one.
        """
        order_id = str(self.current_order_id) if self.current_order_id else None

        with atomic_change(self):
            self.current_order_id = None
            self.is_available = self.status == PilotStatus.APPROVED.value
            if delivered:
                self.total_deliveries = (self.total_deliveries or 0) + 1
                if rating is not None:
                    self._fold_rating(rating)

        if order_id:
            self.raise_(
                PilotReleased(
                    pilot_id=str(self.id),
                    order_id=order_id,
                    total_deliveries=self.total_deliveries,
                    rating_average=self.rating_average,
                    released_at=datetime.now(UTC),
                )
            )

    def _fold_rating(self, rating: int) -> None:
        count = self.rating_count or 0
        average = self.rating_average or 0.0
        self.rating_average = round((average * count + rating) / (count + 1), 1)
        self.rating_count = count + 1


@dispatch.repository(part_of=Pilot)
class PilotRepository:
    def load(self, pilot_id: str) -> Pilot:
        try:
            return self.get(pilot_id)
        except ObjectNotFoundError:
            raise NotFound("Pilot", pilot_id) from None

    def reserve_if_available(self, pilot_id: str, order_id: str) -> bool:
        updated = self._dao._update_all(
            Q(id=pilot_id, status=PilotStatus.APPROVED.value, is_available=True)
            & Q(current_order_id__isnull=True),
            is_available=False,
            current_order_id=order_id,
        )
        return updated == 1

    def release_if_holding(self, pilot_id: str, order_id: str) -> bool:
        updated = self._dao._update_all(
            Q(id=pilot_id, current_order_id=order_id),
            is_available=True,
            current_order_id=None,
        )
        return updated == 1
