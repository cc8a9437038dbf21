"""Handoff codes — one-time proof that the parcel reached the customer.

A code is minted when a pilot first scans an order, sent to the customer
when the order is claimed, and read back by the pilot at the door. The
claim restarts the validity window, which covers the delivery zone's
advertised window plus a grace period. Codes live in their own small
aggregate keyed by order id and never travel with the order itself.

Every verification failure surfaces as the same InvalidCode; only the log
knows whether the code was missing, expired or wrong.
"""

import hmac
import os
import secrets
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.errors import InvalidCode
from dispatch.pricing import delivery_zone

logger = structlog.get_logger(__name__)

CODE_LENGTH = 6

DEFAULT_GRACE_HOURS = 12

# Window used when the order carries no delivery estimate
FALLBACK_VALIDITY_HOURS = 24


@dispatch.aggregate
class HandoffCode:
    order_id = Identifier(identifier=True)
    code = String(required=True, max_length=CODE_LENGTH)
    issued_at = DateTime(required=True)
    expires_at = DateTime(required=True)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return now >= expires_at

    def matches(self, submitted: str) -> bool:
        return hmac.compare_digest(self.code.encode(), str(submitted).strip().encode())


def grace_hours() -> float:
    return float(os.environ.get("HANDOFF_CODE_GRACE_HOURS", DEFAULT_GRACE_HOURS))


def generate_code() -> str:
    return f"{secrets.randbelow(10**CODE_LENGTH):0{CODE_LENGTH}d}"


class HandoffCodeService:
    """Issue, verify and revoke handoff codes for orders."""

    def __init__(self):
        self.repo = current_domain.repository_for(HandoffCode)

    def _find(self, order_id: str) -> HandoffCode | None:
        try:
            return self.repo.get(order_id)
        except ObjectNotFoundError:
            return None

    def _validity(self, order) -> timedelta:
        pricing = order.pricing
        if pricing is None:
            return timedelta(hours=FALLBACK_VALIDITY_HOURS)

        window = pricing.estimate_max_hours or 0
        if pricing.distance_km is not None:
            window = max(window, delivery_zone(pricing.distance_km).eta_max_hours)
        if not window:
            return timedelta(hours=FALLBACK_VALIDITY_HOURS)
        return timedelta(hours=window + grace_hours())

    def issue(self, order, restart_window: bool = False) -> str:
        """Return the live code for the order, minting one if needed.

        Re-scanning an order returns the same code so the customer's copy
        stays valid. With ``restart_window`` a live code keeps its value but
        its validity is measured again from now.
        """
        order_id = str(order.id)
        existing = self._find(order_id)
        now = datetime.now(UTC)

        if existing is not None and not existing.is_expired(now):
            if restart_window:
                existing.issued_at = now
                existing.expires_at = now + self._validity(order)
                self.repo.add(existing)
                logger.info("Handoff code window restarted", order_id=order_id, expires_at=existing.expires_at.isoformat())
            return existing.code

        if existing is not None:
            self.repo._dao.delete(existing)

        handoff = HandoffCode(
            order_id=order_id,
            code=generate_code(),
            issued_at=now,
            expires_at=now + self._validity(order),
        )
        self.repo.add(handoff)
        logger.info("Handoff code issued", order_id=order_id, expires_at=handoff.expires_at.isoformat())
        return handoff.code

    def verify(self, order, submitted_code: str) -> None:
        """Raise InvalidCode unless the submitted code unlocks delivery."""
        order_id = str(order.id)

        if order.status != "dispatched":
            self._reject(order_id, "order_not_dispatched")

        handoff = self._find(order_id)
        if handoff is None:
            self._reject(order_id, "missing")

        if handoff.is_expired():
            self._reject(order_id, "expired")

        if not submitted_code or not handoff.matches(submitted_code):
            self._reject(order_id, "mismatch")

    def live_code(self, order_id: str) -> str | None:
        """The unexpired code for an order, for the customer-facing message."""
        handoff = self._find(str(order_id))
        if handoff is None or handoff.is_expired():
            return None
        return handoff.code

    def revoke(self, order_id: str) -> None:
        handoff = self._find(str(order_id))
        if handoff is not None:
            self.repo._dao.delete(handoff)
            logger.info("Handoff code revoked", order_id=str(order_id))

    def _reject(self, order_id: str, reason: str):
        logger.warning("Handoff code rejected", order_id=order_id, reason=reason)
        raise InvalidCode()
