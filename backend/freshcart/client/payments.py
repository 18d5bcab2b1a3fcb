"""Client-side card confirmation against a payment intent's client secret."""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from freshcart.adapters.mock_payment import MockPaymentAdapter, PaymentDeclined, PaymentUnavailable


@dataclass
class CardInput:
    """What the card widget hands over: a tokenized card and its postal code."""

    token: str
    postal_code: str = ""


@dataclass
class PaymentConfirmation:
    intent_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.intent_id is not None


class CardPaymentProcessor(Protocol):
    def confirm_card_payment(
        self, client_secret: str, card: CardInput, billing_details: Dict[str, Any]
    ) -> PaymentConfirmation: ...


class LocalCardProcessor:
    """Confirms cards directly against an in-process :class:`MockPaymentAdapter`."""

    def __init__(self, adapter: MockPaymentAdapter):
        self.adapter = adapter

    def confirm_card_payment(
        self, client_secret: str, card: CardInput, billing_details: Dict[str, Any]
    ) -> PaymentConfirmation:
        billing = dict(billing_details)
        billing["postal_code"] = card.postal_code
        try:
            intent = self.adapter.confirm_card(client_secret, card.token, billing)
        except (PaymentDeclined, PaymentUnavailable) as e:
            return PaymentConfirmation(error=str(e))
        return PaymentConfirmation(intent_id=intent["id"])
