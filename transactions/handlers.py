from __future__ import annotations

"""Turn handlers for the transaction flow, one per intent."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import ValidationError

from .arguments import (
    AddressAccepted,
    AddressUndecided,
    DeliveryAddressUpdated,
    OrderAccepted,
    RequirementsOk,
    decode_delivery_address,
    decode_requirements_check,
    decode_transaction_decision,
)
from .config import Settings
from .i18n import Catalog
from .models import ConversationResponse, Location, Payload
from .orders import build_proposed_order
from .responses import (
    action_provided_payment,
    delivery_address_request,
    google_provided_payment,
    order_created_update,
    simple_response,
    transaction_decision,
    transaction_requirements,
)

logger = logging.getLogger("transactions.handlers")

DELIVERY_ADDRESS_KEY = "deliveryAddress"


@dataclass
class TurnContext:
    """Mutable context for one turn; handlers append payloads and pick ask or close."""
    session_id: str
    intent: str
    arguments: Dict[str, Any]
    catalog: Catalog
    settings: Settings
    conversation_data: Dict[str, Any] = field(default_factory=dict)
    payloads: List[Payload] = field(default_factory=list)
    action: Literal["ask", "close"] = "ask"

    def ask(self, payload: Union[str, Payload]) -> None:
        self._emit(payload)
        self.action = "ask"

    def close(self, payload: Union[str, Payload]) -> None:
        self._emit(payload)
        self.action = "close"

    def _emit(self, payload: Union[str, Payload]) -> None:
        if isinstance(payload, str):
            payload = simple_response(payload)
        self.payloads.append(payload)

    def stored_delivery_location(self) -> Optional[Location]:
        raw = self.conversation_data.get(DELIVERY_ADDRESS_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return Location.model_validate(raw)
        except ValidationError as exc:
            logger.warning("session=%s stored delivery address unreadable: %s", self.session_id, exc)
            return None

    def to_response(self) -> ConversationResponse:
        return ConversationResponse(
            action=self.action,
            payloads=list(self.payloads),
            conversation_data=dict(self.conversation_data),
        )


def transaction_check_nopayment(turn: TurnContext) -> None:
    turn.ask(transaction_requirements())


def transaction_check_action(turn: TurnContext) -> None:
    turn.ask(transaction_requirements(payment_options=action_provided_payment(), request_delivery_address=False))


def transaction_check_google(turn: TurnContext) -> None:
    turn.ask(transaction_requirements(payment_options=google_provided_payment(), request_delivery_address=False))


def transaction_check_complete(turn: TurnContext) -> None:
    outcome = decode_requirements_check(turn.arguments)
    if isinstance(outcome, RequirementsOk):
        # A real action would take the user through cart building here.
        turn.ask(turn.catalog("transaction_check_complete"))
    else:
        logger.info("session=%s requirements check failed result=%s", turn.session_id, outcome.result_type)
        turn.close(turn.catalog("transaction_check_complete_failed"))


def delivery_address(turn: TurnContext) -> None:
    turn.ask(delivery_address_request(turn.catalog("delivery_address")))


def delivery_address_complete(turn: TurnContext) -> None:
    """Purpose: Store an accepted delivery address for the rest of the session.
    Inputs/Outputs: Reads DELIVERY_ADDRESS_VALUE; asks on ACCEPTED, closes otherwise.
    Side Effects / State: Writes the location to conversation_data on success only.
    Dependencies: decode_delivery_address.
    Failure Modes: Missing or malformed answers take the close branch.
    If Removed: The proposed order can never carry a delivery extension.
    Testing Notes: Follow with transaction_decision_action and inspect the extension.
    """
    outcome = decode_delivery_address(turn.arguments)
    if not isinstance(outcome, AddressAccepted):
        decision = outcome.decision if isinstance(outcome, AddressUndecided) else "REJECTED"
        logger.info("session=%s delivery address not accepted decision=%s", turn.session_id, decision)
        turn.close(turn.catalog("delivery_address_complete_failed"))
        return
    postal_address = outcome.location.postal_address
    first_line = postal_address.address_lines[0] if postal_address and postal_address.address_lines else ""
    logger.info("session=%s DELIVERY ADDRESS: %s", turn.session_id, first_line)
    turn.conversation_data[DELIVERY_ADDRESS_KEY] = outcome.location.model_dump(by_alias=True, exclude_none=True)
    turn.ask(turn.catalog("delivery_address_complete"))


def transaction_decision_action(turn: TurnContext) -> None:
    order = build_proposed_order(turn.catalog, turn.settings.order_id, turn.stored_delivery_location())
    # Payment with the sample only works outside the simulator's sandbox mode.
    turn.ask(transaction_decision(order, action_provided_payment(), request_delivery_address=True))


def transaction_decision_google(turn: TurnContext) -> None:
    order = build_proposed_order(turn.catalog, turn.settings.order_id, turn.stored_delivery_location())
    turn.ask(transaction_decision(order, google_provided_payment(), request_delivery_address=False))


def transaction_decision_complete(turn: TurnContext) -> None:
    """Confirm an accepted order, loop back on an address change, or close."""
    logger.info("session=%s transaction decision complete", turn.session_id)
    outcome = decode_transaction_decision(turn.arguments)
    if isinstance(outcome, OrderAccepted):
        # Charges and order processing would happen in the backend at this point.
        turn.ask(
            order_created_update(
                turn.catalog,
                final_order_id=outcome.final_order_id,
                receipt_order_id=turn.settings.order_id,
                customer_service_url=turn.settings.customer_service_url,
            )
        )
        turn.ask(turn.catalog("transaction_decision_complete"))
    elif isinstance(outcome, DeliveryAddressUpdated):
        turn.ask(delivery_address_request(turn.catalog("transaction_decision_complete.addressOptions.reason")))
    else:
        logger.info("session=%s transaction not completed decision=%s", turn.session_id, outcome.decision)
        turn.close(turn.catalog("transaction_decision_complete_failed"))
