from __future__ import annotations

"""Typed decoding of per-turn arguments.

Handlers never look at raw argument dicts: each argument the flow reads is
decoded here once into a small closed set of outcomes. Anything absent or
malformed decodes to the outcome that sends the handler down its failure
branch.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from .models import Location

logger = logging.getLogger("transactions.arguments")

REQUIREMENTS_CHECK_ARG = "TRANSACTION_REQUIREMENTS_CHECK_RESULT"
DELIVERY_ADDRESS_ARG = "DELIVERY_ADDRESS_VALUE"
TRANSACTION_DECISION_ARG = "TRANSACTION_DECISION_VALUE"


@dataclass(frozen=True)
class RequirementsOk:
    pass


@dataclass(frozen=True)
class RequirementsFailed:
    result_type: Optional[str] = None


@dataclass(frozen=True)
class AddressAccepted:
    location: Location


@dataclass(frozen=True)
class AddressRejected:
    pass


@dataclass(frozen=True)
class AddressUndecided:
    decision: Optional[str] = None


@dataclass(frozen=True)
class OrderAccepted:
    final_order_id: str


@dataclass(frozen=True)
class DeliveryAddressUpdated:
    pass


@dataclass(frozen=True)
class TransactionRejected:
    decision: Optional[str] = None


RequirementsCheck = Union[RequirementsOk, RequirementsFailed]
AddressDecision = Union[AddressAccepted, AddressRejected, AddressUndecided]
TransactionOutcome = Union[OrderAccepted, DeliveryAddressUpdated, TransactionRejected]


def _argument_object(arguments: Mapping[str, Any], name: str) -> Optional[Mapping[str, Any]]:
    value = arguments.get(name)
    if isinstance(value, Mapping):
        return value
    if value is not None:
        logger.info("argument=%s ignored, expected an object got %s", name, type(value).__name__)
    return None


def _string_field(value: Mapping[str, Any], key: str) -> Optional[str]:
    field_value = value.get(key)
    return field_value if isinstance(field_value, str) else None


def decode_requirements_check(arguments: Mapping[str, Any]) -> RequirementsCheck:
    """Decode the result of a transaction requirements check."""
    value = _argument_object(arguments, REQUIREMENTS_CHECK_ARG)
    if value is None:
        return RequirementsFailed()
    result_type = _string_field(value, "resultType")
    if result_type == "OK":
        return RequirementsOk()
    return RequirementsFailed(result_type=result_type)


def decode_delivery_address(arguments: Mapping[str, Any]) -> AddressDecision:
    """Purpose: Decode the user's answer to a delivery address request.
    Inputs/Outputs: Input is the turn's argument mapping; output is an AddressDecision.
    Side Effects / State: Logs when an accepted answer carries no usable address.
    Dependencies: Validates the location with the Location model.
    Failure Modes: Never raises; malformed values decode to AddressUndecided.
    If Removed: Handlers would re-check raw decision strings themselves.
    Testing Notes: Cover ACCEPTED with and without a location, REJECTED, and absent.
    """
    value = _argument_object(arguments, DELIVERY_ADDRESS_ARG)
    if value is None:
        return AddressUndecided()
    decision = _string_field(value, "userDecision")
    if decision == "REJECTED":
        return AddressRejected()
    if decision != "ACCEPTED":
        return AddressUndecided(decision=decision)
    raw_location = value.get("location")
    if not isinstance(raw_location, Mapping):
        logger.warning("delivery address accepted without a location")
        return AddressUndecided(decision=decision)
    try:
        location = Location.model_validate(raw_location)
    except ValidationError as exc:
        logger.warning("delivery address accepted with invalid location: %s", exc)
        return AddressUndecided(decision=decision)
    if location.postal_address is None:
        logger.warning("delivery address accepted without a postal address")
        return AddressUndecided(decision=decision)
    return AddressAccepted(location=location)


def decode_transaction_decision(arguments: Mapping[str, Any]) -> TransactionOutcome:
    """Decode the user's answer to a proposed order."""
    value = _argument_object(arguments, TRANSACTION_DECISION_ARG)
    if value is None:
        return TransactionRejected()
    decision = _string_field(value, "userDecision")
    if decision == "DELIVERY_ADDRESS_UPDATED":
        return DeliveryAddressUpdated()
    if decision != "ORDER_ACCEPTED":
        return TransactionRejected(decision=decision)
    order = value.get("order")
    final_order = order.get("finalOrder") if isinstance(order, Mapping) else None
    final_order_id = _string_field(final_order, "id") if isinstance(final_order, Mapping) else None
    if not final_order_id:
        logger.warning("order accepted without a final order id")
        return TransactionRejected(decision=decision)
    return OrderAccepted(final_order_id=final_order_id)
