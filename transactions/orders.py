from __future__ import annotations

"""Fixed book-store cart used by the transaction decision turns.

The cart contents are data; the builder only localizes display strings,
derives the subtotal and total from the line prices, and attaches the
delivery extension when a stored address is available.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from .i18n import Catalog
from .models import (
    Cart,
    DeliveryLocation,
    LineItem,
    Location,
    Merchant,
    Money,
    Order,
    OrderExtension,
    Price,
    SubLine,
)

MERCHANT_ID = "book_store_1"
CURRENCY_CODE = "USD"


@dataclass(frozen=True)
class BookLine:
    """One purchasable book, with either a localized note or an add-on line under it."""
    id: str
    name: str
    price: Decimal
    quantity: int = 1
    note_key: Optional[str] = None
    add_on: Optional["BookLine"] = None


BOOK_LINES = (
    BookLine(
        id="memoirs_1",
        name="My Memoirs",
        price=Decimal("3.99"),
        note_key="order.cart.lineItems1.subLines.note",
    ),
    BookLine(
        id="memoirs_2",
        name="Memoirs of a person",
        price=Decimal("5.99"),
        note_key="order.cart.lineItems2.subLines.note",
    ),
    BookLine(
        id="memoirs_3",
        name="Their memoirs",
        price=Decimal("15.75"),
        add_on=BookLine(id="memoirs_epilogue", name="Special memoir epilogue", price=Decimal("3.99")),
    ),
    BookLine(
        id="memoirs_4",
        name="Our memoirs",
        price=Decimal("6.49"),
        note_key="order.cart.lineItems4.subLines.note",
    ),
)
TAX_AMOUNT = Decimal("2.78")


def _price(amount: Decimal, price_type: str) -> Price:
    return Price(type=price_type, amount=Money.from_decimal(amount, CURRENCY_CODE))


def _line_item(line: BookLine, catalog: Catalog) -> LineItem:
    sub_lines: Optional[List[SubLine]] = None
    if line.note_key:
        sub_lines = [SubLine(note=catalog(line.note_key))]
    elif line.add_on:
        sub_lines = [SubLine(line_item=_line_item(line.add_on, catalog))]
    return LineItem(
        id=line.id,
        name=line.name,
        price=_price(line.price, "ACTUAL"),
        quantity=line.quantity,
        sub_lines=sub_lines,
        type="REGULAR",
    )


def line_subtotal(lines: Iterable[LineItem]) -> Decimal:
    """Sum of top-level line prices times quantities; add-on sub-lines are priced into their parent."""
    return sum(
        (item.price.amount.to_decimal() * (item.quantity or 1) for item in lines),
        Decimal("0"),
    )


def verify_order_totals(order: Order) -> None:
    """Purpose: Check that an order's aggregates reconcile with its lines.
    Inputs/Outputs: Input is an Order; no return value.
    Side Effects / State: None.
    Dependencies: Uses line_subtotal and Money.to_decimal.
    Failure Modes: ValueError when the SUBTOTAL aggregate differs from the line sum,
        or the total differs from the sum of the aggregates.
    If Removed: A mistyped price would silently reach the user.
    Testing Notes: Build the fixed order, then tamper with the tax amount.
    """
    expected_subtotal = line_subtotal(order.cart.line_items)
    aggregates = list(order.cart.other_items) + list(order.other_items)
    for item in aggregates:
        if item.type == "SUBTOTAL" and item.price.amount.to_decimal() != expected_subtotal:
            raise ValueError(
                f"Subtotal {item.price.amount.to_decimal()} does not match line items {expected_subtotal}"
            )
    aggregate_total = sum((item.price.amount.to_decimal() for item in aggregates), Decimal("0"))
    total = order.total_price.amount.to_decimal()
    if total != aggregate_total:
        raise ValueError(f"Total {total} does not match aggregate items {aggregate_total}")


def delivery_extension(location: Location) -> OrderExtension:
    """Wrap a stored delivery location in the generic order extension."""
    return OrderExtension(
        locations=[DeliveryLocation(location=Location(postal_address=location.postal_address))],
    )


def build_proposed_order(
    catalog: Catalog,
    order_id: str,
    delivery_location: Optional[Location] = None,
) -> Order:
    """Purpose: Build the fixed book-store order for a transaction decision.
    Inputs/Outputs: Inputs are the turn's catalog, the order id, and an optional stored
        location; output is a validated Order.
    Side Effects / State: None; a fresh Order is built on every call.
    Dependencies: Uses BOOK_LINES, TAX_AMOUNT and verify_order_totals.
    Failure Modes: ValueError if the cart data stops reconciling.
    If Removed: transaction_decision turns have nothing to propose.
    Testing Notes: Compare totals and check the extension with and without a location.
    """
    line_items = [_line_item(line, catalog) for line in BOOK_LINES]
    subtotal = line_subtotal(line_items)
    other_items = [
        LineItem(
            id="subtotal",
            name=catalog("order.cart.otherItems1.name"),
            price=_price(subtotal, "ESTIMATE"),
            type="SUBTOTAL",
        ),
        LineItem(
            id="tax",
            name=catalog("order.cart.otherItems2.name"),
            price=_price(TAX_AMOUNT, "ESTIMATE"),
            type="TAX",
        ),
    ]
    extension = None
    if delivery_location is not None and delivery_location.postal_address is not None:
        extension = delivery_extension(delivery_location)
    order = Order(
        id=order_id,
        cart=Cart(
            merchant=Merchant(id=MERCHANT_ID, name=catalog("order.cart.merchant.name")),
            line_items=line_items,
            notes=catalog("order.cart.notes"),
            other_items=other_items,
        ),
        other_items=[],
        total_price=_price(subtotal + TAX_AMOUNT, "ESTIMATE"),
        extension=extension,
    )
    verify_order_totals(order)
    return order
