"""Commerce: bounded contexts for an online shop.

Two contexts compose this domain:
- Commerce: customers, orders and their line items, payment
- Shipping: shipments of placed orders (downstream of Commerce)

The domain exercises every object kind:
- Entities with identity (Customer, Order, LineItem, Shipment)
- Value objects (Money, CardDetails, Address)
- A simple enum (OrderStatus) and an enum with a payload (PaymentMethod)
- An aggregate with an invariant (OrderAggregate)
- A context map with object mappings
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

from sketchddd.context import BoundedContext
from sketchddd.context_map import DomainModel, ObjectMapping, Pattern
from sketchddd.equations import parse_equation


def build_commerce() -> BoundedContext:
    ctx = BoundedContext(name="Commerce", description="Orders placed by customers")

    ctx.add_entity("Customer", {"name": "String", "email": "String?"})
    ctx.add_value_object("Money", {"amount": "Decimal", "currency": "String"})
    ctx.add_value_object("CardDetails", {"number": "String", "expires": "Date"})
    ctx.add_entity("Order", {"totalPrice": "Decimal", "placedAt": "DateTime"})
    ctx.add_entity("LineItem", {"price": "Decimal", "quantity": "Int"})
    ctx.add_enum("OrderStatus", ["Pending", "Paid", "Shipped", "Cancelled"])
    ctx.add_enum("PaymentMethod", ["Cash", ("Card", "CardDetails")])

    ctx.add_aggregate(
        "OrderAggregate",
        root="Order",
        members=["LineItem"],
        invariants=[
            parse_equation("totalPrice = sum(items.price)", name="totalMatchesItems"),
            "an order cannot be modified once shipped",
        ],
        description="An order and its line items",
    )

    ctx.add_morphism("placedBy", "Order", "Customer")
    ctx.add_morphism("items", "Order", "LineItem", "many")
    ctx.add_morphism("status", "Order", "OrderStatus")
    ctx.add_morphism("payment", "Order", "PaymentMethod", "optional")

    ctx.add_equation(parse_equation("quantity > 0", name="positiveQuantity", source="LineItem"))
    return ctx


def build_shipping() -> BoundedContext:
    ctx = BoundedContext(name="Shipping", description="Getting placed orders to customers")

    ctx.add_value_object("Address", {"street": "String", "city": "String", "postcode": "String"})
    ctx.add_entity("Shipment", {"orderId": "UUID", "trackingCode": "String?"})
    ctx.add_enum("Carrier", ["Post", "Courier"])

    ctx.add_aggregate("ShipmentAggregate", root="Shipment",
                      invariants=["a shipment is dispatched by exactly one carrier"])
    ctx.add_morphism("destination", "Shipment", "Address")
    ctx.add_morphism("carrier", "Shipment", "Carrier")
    return ctx


def build_domain() -> DomainModel:
    """Build the complete commerce domain model."""
    model = DomainModel()
    model.add_context(build_commerce())
    model.add_context(build_shipping())
    model.add_context_map(
        "OrderFulfilment",
        source="Commerce",
        target="Shipping",
        pattern=Pattern.CUSTOMER_SUPPLIER,
        mappings=[ObjectMapping("Order", "Shipment", "each order ships once")],
    )
    return model
