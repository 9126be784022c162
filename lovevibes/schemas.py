"""Request bodies and webhook event payloads, validated at the boundary.

Webhook events are a tagged union keyed on `type`; anything we do not act
on parses as UnhandledEvent so it can still be acknowledged and recorded.
"""

import re
from typing import Annotated, Any, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from lovevibes.errors import InvalidInputError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_body(model, data):
    """Validate `data` against `model`, raising InvalidInputError on failure."""
    if data is None:
        raise InvalidInputError("Request body must be a JSON object")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ()))
        message = first.get("msg", "Invalid value")
        raise InvalidInputError(f"{field}: {message}" if field else message) from e


# ──────────────────────────────────────────────
# API request bodies
# ──────────────────────────────────────────────

class SwipeRequest(BaseModel):
    target_id: str = Field(min_length=1, max_length=36)


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=128)
    name: Optional[str] = Field(default=None, max_length=255)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value):
        value = value.lower().strip()
        if not EMAIL_RE.match(value):
            raise ValueError("A valid email is required")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, value):
        return value.lower().strip()


class PurchaseCreditsRequest(BaseModel):
    package_id: str = Field(min_length=1)


class SubscribeRequest(BaseModel):
    tier: Literal["plus", "platinum"]
    interval: Literal["monthly", "yearly"] = "monthly"


# ──────────────────────────────────────────────
# Stripe webhook payloads
# ──────────────────────────────────────────────

class _StripeObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CheckoutSession(_StripeObject):
    client_reference_id: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    mode: Optional[str] = None

    @property
    def credits(self):
        """Credits to grant, read from metadata. Non-numeric means none."""
        raw = self.metadata.get("credits")
        try:
            return int(raw)
        except (TypeError, ValueError):
            return 0


class Subscription(_StripeObject):
    customer: Optional[str] = None
    status: Optional[str] = None
    current_period_end: Optional[int] = None
    items: Optional[dict[str, Any]] = None

    @property
    def user_id(self):
        return self.metadata.get("user_id")

    @property
    def tier(self):
        return self.metadata.get("tier") or "plus"

    @property
    def period_end(self):
        """current_period_end as a unix timestamp.

        Newer Stripe API versions moved current_period_end from the
        subscription top level to items.data[0].current_period_end, so
        both locations are checked.
        """
        if self.current_period_end:
            return self.current_period_end
        data = (self.items or {}).get("data") or []
        if data:
            return data[0].get("current_period_end")
        return None


class Invoice(_StripeObject):
    customer: Optional[str] = None
    subscription: Optional[str] = None
    amount_due: Optional[int] = None


class _CheckoutData(BaseModel):
    object: CheckoutSession


class _SubscriptionData(BaseModel):
    object: Subscription


class _InvoiceData(BaseModel):
    object: Invoice


class _Event(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    created: Optional[int] = None
    livemode: bool = False


class CheckoutCompletedEvent(_Event):
    type: Literal["checkout.session.completed"]
    data: _CheckoutData


class SubscriptionChangedEvent(_Event):
    type: Literal["customer.subscription.created", "customer.subscription.updated"]
    data: _SubscriptionData


class SubscriptionDeletedEvent(_Event):
    type: Literal["customer.subscription.deleted"]
    data: _SubscriptionData


class PaymentFailedEvent(_Event):
    type: Literal["invoice.payment_failed"]
    data: _InvoiceData


class UnhandledEvent(_Event):
    type: str = Field(min_length=1)


HANDLED_EVENTS = (
    CheckoutCompletedEvent,
    SubscriptionChangedEvent,
    SubscriptionDeletedEvent,
    PaymentFailedEvent,
)

StripeEvent = Annotated[Union[HANDLED_EVENTS], Field(discriminator="type")]

_event_adapter = TypeAdapter(StripeEvent)

# Every `type` literal declared by the variants above.
HANDLED_EVENT_TYPES = frozenset(
    event_type
    for model in HANDLED_EVENTS
    for event_type in get_args(model.model_fields["type"].annotation)
)


def parse_webhook_event(raw_body):
    """Parse a verified webhook body into its event variant.

    Raises InvalidInputError if the body is not an event with id + type,
    or if a handled event type carries a malformed payload.
    """
    try:
        envelope = UnhandledEvent.model_validate_json(raw_body)
        if envelope.type not in HANDLED_EVENT_TYPES:
            return envelope
        return _event_adapter.validate_json(raw_body)
    except ValidationError as e:
        raise InvalidInputError("Malformed webhook event") from e
