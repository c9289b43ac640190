from __future__ import annotations

"""Builders for the typed payloads a turn can emit. All are pure."""

from datetime import datetime, timezone
from typing import Optional

from .i18n import Catalog
from .models import (
    ActionProvidedPaymentOptions,
    AddressOptions,
    Button,
    DeliveryAddressRequest,
    GoogleProvidedPaymentOptions,
    OpenUrlAction,
    Order,
    OrderManagementAction,
    OrderOptions,
    OrderState,
    OrderUpdate,
    PaymentOptions,
    Receipt,
    SimpleResponse,
    TransactionDecisionRequest,
    TransactionRequirementsRequest,
    UserNotification,
)

PAYMENT_CARD_DISPLAY_NAME = "VISA-1234"
SUPPORTED_CARD_NETWORKS = ("VISA", "AMEX")


def simple_response(text: str) -> SimpleResponse:
    return SimpleResponse(text=text)


def action_provided_payment() -> PaymentOptions:
    return PaymentOptions(
        action_provided_options=ActionProvidedPaymentOptions(
            payment_type="PAYMENT_CARD",
            display_name=PAYMENT_CARD_DISPLAY_NAME,
        ),
    )


def google_provided_payment() -> PaymentOptions:
    # Tokenization parameters come from the payment processor; the sample sends none.
    return PaymentOptions(
        google_provided_options=GoogleProvidedPaymentOptions(
            prepaid_card_disallowed=False,
            supported_card_networks=list(SUPPORTED_CARD_NETWORKS),
            tokenization_parameters={},
        ),
    )


def transaction_requirements(
    payment_options: Optional[PaymentOptions] = None,
    request_delivery_address: Optional[bool] = None,
) -> TransactionRequirementsRequest:
    """Requirements check; with no arguments it is the bare, payment-less check."""
    order_options = None
    if request_delivery_address is not None:
        order_options = OrderOptions(request_delivery_address=request_delivery_address)
    return TransactionRequirementsRequest(order_options=order_options, payment_options=payment_options)


def delivery_address_request(reason: str) -> DeliveryAddressRequest:
    return DeliveryAddressRequest(address_options=AddressOptions(reason=reason))


def transaction_decision(
    order: Order,
    payment_options: PaymentOptions,
    request_delivery_address: bool,
) -> TransactionDecisionRequest:
    return TransactionDecisionRequest(
        order_options=OrderOptions(request_delivery_address=request_delivery_address),
        payment_options=payment_options,
        proposed_order=order,
    )


def order_created_update(
    catalog: Catalog,
    final_order_id: str,
    receipt_order_id: str,
    customer_service_url: str,
    now: Optional[datetime] = None,
) -> OrderUpdate:
    """Purpose: Build the confirmation sent once the user accepts the order.
    Inputs/Outputs: Inputs are the turn catalog, the platform's final order id, the
        merchant order id for the receipt, and the customer service URL; output is an
        OrderUpdate in state CREATED.
    Side Effects / State: None; the update time defaults to the current UTC time.
    Dependencies: Localized label, button title and notification from the catalog.
    Failure Modes: None.
    If Removed: Accepted orders get no confirmation card.
    Testing Notes: Pass a fixed `now` and compare update_time.
    """
    timestamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return OrderUpdate(
        action_order_id=final_order_id,
        order_state=OrderState(
            label=catalog("transaction_decision_complete.orderState.label"),
            state="CREATED",
        ),
        line_item_updates={},
        update_time=timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        receipt=Receipt(confirmed_action_order_id=receipt_order_id),
        order_management_actions=[
            OrderManagementAction(
                type="CUSTOMER_SERVICE",
                button=Button(
                    title=catalog("transaction_decision_complete.orderManagementActions.button.title"),
                    open_url_action=OpenUrlAction(url=customer_service_url),
                ),
            )
        ],
        user_notification=UserNotification(
            title=catalog("transaction_decision_complete.userNotification.title"),
            text=catalog("transaction_decision_complete.userNotification.text"),
        ),
    )
