"""Order intake — placing and confirming orders.

Placement prices the delivery leg from the pickup and drop coordinates;
confirmation is normally driven by the payment handler.
"""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.order.order import GeoPoint, Order, OrderPricing, OrderStatus
from dispatch.pricing import DeliveryArea, quote_delivery, validate_coordinates


@dispatch.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    customer_name = String(max_length=100)
    customer_phone = String(max_length=20)
    pickup_latitude = Float(required=True)
    pickup_longitude = Float(required=True)
    pickup_address = String(max_length=500)
    drop_latitude = Float(required=True)
    drop_longitude = Float(required=True)
    drop_address = String(max_length=500)
    subtotal = Float(required=True, min_value=0.0)
    total_weight_kg = Float(default=0.0, min_value=0.0)
    area = String(max_length=10, default=DeliveryArea.URBAN.value, choices=DeliveryArea)


@dispatch.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)
    actor = String(max_length=100)


@dispatch.command_handler(part_of=Order)
class OrderIntakeHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        pickup = validate_coordinates(command.pickup_latitude, command.pickup_longitude)
        drop = validate_coordinates(command.drop_latitude, command.drop_longitude)

        quote = quote_delivery(pickup, drop, command.total_weight_kg or 0.0, command.area or DeliveryArea.URBAN.value)
        pricing = OrderPricing(
            subtotal=command.subtotal,
            distance_km=quote.distance_km,
            zone=quote.zone.name,
            eta_label=quote.zone.eta_label,
            transport_cost=quote.transport_cost,
            total=round(command.subtotal + quote.transport_cost, 2),
            estimate_min_hours=quote.estimate_min_hours,
            estimate_max_hours=quote.estimate_max_hours,
        )

        order = Order.place(
            customer_id=command.customer_id,
            supplier_id=command.supplier_id,
            customer_name=command.customer_name,
            customer_phone=command.customer_phone,
            pickup_location=GeoPoint(latitude=pickup[0], longitude=pickup[1]),
            pickup_address=command.pickup_address,
            drop_location=GeoPoint(latitude=drop[0], longitude=drop[1]),
            drop_address=command.drop_address,
            pricing=pricing,
            total_weight_kg=command.total_weight_kg or 0.0,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)

    @handle(ConfirmOrder)
    def confirm_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.advance(OrderStatus.CONFIRMED, note="Order confirmed", actor=command.actor or "system")
        repo.add(order)
