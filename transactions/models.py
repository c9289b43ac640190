from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

NANOS_PER_UNIT = 1_000_000_000

GENERIC_EXTENSION_TYPE = "type.googleapis.com/google.actions.v2.orders.GenericExtension"
TRANSACTION_REQUIREMENTS_INTENT = "actions.intent.TRANSACTION_REQUIREMENTS_CHECK"
TRANSACTION_REQUIREMENTS_TYPE = "type.googleapis.com/google.actions.v2.TransactionRequirementsCheckSpec"
DELIVERY_ADDRESS_INTENT = "actions.intent.DELIVERY_ADDRESS"
DELIVERY_ADDRESS_TYPE = "type.googleapis.com/google.actions.v2.DeliveryAddressValueSpec"
TRANSACTION_DECISION_INTENT = "actions.intent.TRANSACTION_DECISION"
TRANSACTION_DECISION_TYPE = "type.googleapis.com/google.actions.v2.TransactionDecisionValueSpec"


class PlatformModel(BaseModel):
    """Base for platform-facing structures serialized with camelCase keys."""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# Inbound turn


class UserProfile(BaseModel):
    """User profile fields the webhook reads from a turn."""
    locale: Optional[str] = None


class ConversationRequest(BaseModel):
    """Request payload for one conversational turn."""
    session_id: str
    intent: str
    user: UserProfile = Field(default_factory=UserProfile)
    arguments: Dict[str, Any] = Field(default_factory=dict)


# Addresses


class PostalAddress(PlatformModel):
    """Postal address as returned by the platform; unknown fields are kept verbatim."""
    model_config = ConfigDict(extra="allow")
    region_code: Optional[str] = None
    postal_code: Optional[str] = None
    administrative_area: Optional[str] = None
    locality: Optional[str] = None
    address_lines: Optional[List[str]] = None
    recipients: Optional[List[str]] = None


class Location(PlatformModel):
    """Location wrapper carrying the postal address plus any extra platform fields."""
    model_config = ConfigDict(extra="allow")
    postal_address: Optional[PostalAddress] = None


# Orders


class Money(PlatformModel):
    """Exact amount split into whole units and nanos."""
    currency_code: str = "USD"
    units: int
    nanos: int = 0

    @classmethod
    def from_decimal(cls, amount: Decimal, currency_code: str = "USD") -> "Money":
        quantized = Decimal(amount).quantize(Decimal("0.000000001"), rounding=ROUND_HALF_EVEN)
        units = int(quantized)
        nanos = int((quantized - units) * NANOS_PER_UNIT)
        return cls(currency_code=currency_code, units=units, nanos=nanos)

    def to_decimal(self) -> Decimal:
        return Decimal(self.units) + Decimal(self.nanos) / NANOS_PER_UNIT


class Price(PlatformModel):
    type: Literal["ACTUAL", "ESTIMATE"]
    amount: Money


class Merchant(PlatformModel):
    id: str
    name: str


class LineItem(PlatformModel):
    """Cart line; sub-lines may nest one more line item under it."""
    id: str
    name: str
    price: Price
    type: str
    quantity: Optional[int] = None
    sub_lines: Optional[List["SubLine"]] = None


class SubLine(PlatformModel):
    note: Optional[str] = None
    line_item: Optional[LineItem] = None


LineItem.model_rebuild()


class Cart(PlatformModel):
    merchant: Merchant
    line_items: List[LineItem]
    notes: Optional[str] = None
    other_items: List[LineItem] = Field(default_factory=list)


class DeliveryLocation(PlatformModel):
    type: Literal["DELIVERY"] = "DELIVERY"
    location: Location


class OrderExtension(PlatformModel):
    type_: str = Field(default=GENERIC_EXTENSION_TYPE, alias="@type")
    locations: List[DeliveryLocation]


class Order(PlatformModel):
    """Proposed order sent with a transaction decision."""
    id: str
    cart: Cart
    other_items: List[LineItem] = Field(default_factory=list)
    total_price: Price
    extension: Optional[OrderExtension] = None


# Response payloads


class OrderOptions(PlatformModel):
    request_delivery_address: bool = False


class ActionProvidedPaymentOptions(PlatformModel):
    payment_type: str
    display_name: str


class GoogleProvidedPaymentOptions(PlatformModel):
    prepaid_card_disallowed: bool = False
    supported_card_networks: List[str] = Field(default_factory=list)
    tokenization_parameters: Dict[str, Any] = Field(default_factory=dict)


class PaymentOptions(PlatformModel):
    action_provided_options: Optional[ActionProvidedPaymentOptions] = None
    google_provided_options: Optional[GoogleProvidedPaymentOptions] = None


class AddressOptions(PlatformModel):
    reason: str


class SimpleResponse(PlatformModel):
    kind: Literal["simple_response"] = "simple_response"
    text: str


class TransactionRequirementsRequest(PlatformModel):
    kind: Literal["transaction_requirements"] = "transaction_requirements"
    intent: str = TRANSACTION_REQUIREMENTS_INTENT
    type_: str = Field(default=TRANSACTION_REQUIREMENTS_TYPE, alias="@type")
    order_options: Optional[OrderOptions] = None
    payment_options: Optional[PaymentOptions] = None


class DeliveryAddressRequest(PlatformModel):
    kind: Literal["delivery_address"] = "delivery_address"
    intent: str = DELIVERY_ADDRESS_INTENT
    type_: str = Field(default=DELIVERY_ADDRESS_TYPE, alias="@type")
    address_options: AddressOptions


class TransactionDecisionRequest(PlatformModel):
    kind: Literal["transaction_decision"] = "transaction_decision"
    intent: str = TRANSACTION_DECISION_INTENT
    type_: str = Field(default=TRANSACTION_DECISION_TYPE, alias="@type")
    order_options: OrderOptions
    payment_options: PaymentOptions
    proposed_order: Order


class OrderState(PlatformModel):
    label: str
    state: str


class Receipt(PlatformModel):
    confirmed_action_order_id: str


class OpenUrlAction(PlatformModel):
    url: str


class Button(PlatformModel):
    title: str
    open_url_action: OpenUrlAction


class OrderManagementAction(PlatformModel):
    type: str
    button: Button


class UserNotification(PlatformModel):
    title: str
    text: str


class OrderUpdate(PlatformModel):
    kind: Literal["order_update"] = "order_update"
    action_order_id: str
    order_state: OrderState
    line_item_updates: Dict[str, Any] = Field(default_factory=dict)
    update_time: str
    receipt: Receipt
    order_management_actions: List[OrderManagementAction] = Field(default_factory=list)
    user_notification: UserNotification


Payload = Annotated[
    Union[
        SimpleResponse,
        TransactionRequirementsRequest,
        DeliveryAddressRequest,
        TransactionDecisionRequest,
        OrderUpdate,
    ],
    Field(discriminator="kind"),
]


class ConversationResponse(BaseModel):
    """Response payload returned to the platform for one turn."""
    action: Literal["ask", "close"]
    payloads: List[Payload] = Field(default_factory=list)
    conversation_data: Dict[str, Any] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def expect_user_response(self) -> bool:
        return self.action == "ask"

    def texts(self) -> List[str]:
        return [payload.text for payload in self.payloads if isinstance(payload, SimpleResponse)]


class SessionData(BaseModel):
    """Conversation-scoped data for a session, as exposed by the sessions endpoint."""
    session_id: str
    conversation_data: Dict[str, Any]
