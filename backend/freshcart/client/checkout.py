"""
Checkout flow: delivery details, payment, order submission.

Totals are derived from the cart on every call, never cached. A card order
confirms payment with the processor before the order is submitted; any
failure leaves the cart untouched and comes back as a ``CheckoutResult``
instead of an exception.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from freshcart.client.api import ApiClient
from freshcart.client.errors import ApiError, AuthenticationError, NetworkError
from freshcart.client.payments import CardInput, CardPaymentProcessor
from freshcart.client.state import AppState
from freshcart.pricing import OrderTotals, compute_totals

log = logging.getLogger("checkout")

DELIVERY_SLOTS = {
    "morning": "9:00 AM - 12:00 PM",
    "afternoon": "12:00 PM - 5:00 PM",
    "evening": "5:00 PM - 9:00 PM",
}
PAYMENT_METHODS = ("cod", "card")
STEPS = ("delivery", "payment")


@dataclass
class DeliveryAddress:
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""

    def cleaned(self) -> Dict[str, str]:
        return {k: (v or "").strip() for k, v in self.__dict__.items()}

    def is_complete(self) -> bool:
        return all(self.cleaned().values())

    def normalized(self) -> str:
        a = self.cleaned()
        if not self.is_complete():
            return ""
        return f"{a['street']}, {a['city']}, {a['state']} {a['zip']}, {a['country']}"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    PAYMENT = "payment"
    UPSTREAM = "upstream"
    NETWORK = "network"


@dataclass
class ValidationIssue:
    field: str
    message: str


@dataclass
class CheckoutError:
    kind: ErrorKind
    message: str
    issues: List[ValidationIssue] = field(default_factory=list)


@dataclass
class CheckoutResult:
    order: Optional[Dict[str, Any]] = None
    error: Optional[CheckoutError] = None
    redirect_to: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CheckoutForm:
    address: DeliveryAddress = field(default_factory=DeliveryAddress)
    delivery_time: Optional[str] = None
    contact_phone: str = ""
    contact_email: str = ""
    payment_method: Optional[str] = None
    # set once the card widget is mounted and reports a token
    card: Optional[CardInput] = None


class Checkout:
    def __init__(
        self,
        state: AppState,
        api: ApiClient,
        card_processor: Optional[CardPaymentProcessor] = None,
        currency: str = "usd",
    ):
        self.state = state
        self.api = api
        self.card_processor = card_processor
        self.currency = currency
        self.form = CheckoutForm()
        self.expanded: Set[str] = {"delivery"}
        self.focused = "delivery"
        self.submitting = False
        self.last_error: Optional[CheckoutError] = None
        self._prefill_contact()

    def _prefill_contact(self) -> None:
        user = self.state.user
        self.form.contact_email = user.get("email") or ""
        self.form.contact_phone = user.get("mobile_number") or ""

    # --- steps ------------------------------------------------------------

    def toggle_step(self, step: str) -> None:
        if step not in STEPS:
            raise ValueError(f"Unknown checkout step {step!r}")
        if step in self.expanded:
            self.expanded.discard(step)
        else:
            self.expanded.add(step)

    def continue_to_payment(self) -> None:
        self.expanded.add("payment")
        self.focused = "payment"

    # --- inputs -----------------------------------------------------------

    def select_time_slot(self, slot: str) -> None:
        if slot not in DELIVERY_SLOTS:
            raise ValueError(f"Unknown delivery slot {slot!r}")
        self.form.delivery_time = slot

    def select_payment_method(self, method: str) -> None:
        if method not in PAYMENT_METHODS:
            raise ValueError(f"Unknown payment method {method!r}")
        self.form.payment_method = method

    def use_saved_address(self, label: str) -> None:
        saved = self.state.address_book.get(label)
        if saved is None:
            raise KeyError(label)
        self.form.address = DeliveryAddress(**{k: saved.get(k, "") for k in DeliveryAddress().__dict__})

    def save_address(self, label: str) -> None:
        self.state.address_book.save(label, self.form.address.cleaned())

    # --- derived values ---------------------------------------------------

    def totals(self) -> OrderTotals:
        return compute_totals(self.state.cart.lines())

    def validate(self) -> List[ValidationIssue]:
        f = self.form
        issues: List[ValidationIssue] = []
        if self.state.cart.is_empty():
            issues.append(ValidationIssue("cart", "Your cart is empty."))
        if not f.address.is_complete():
            missing = [k for k, v in f.address.cleaned().items() if not v]
            issues.append(ValidationIssue("address", "Address is missing: " + ", ".join(missing)))
        if f.delivery_time not in DELIVERY_SLOTS:
            issues.append(ValidationIssue("delivery_time", "Choose a delivery time."))
        if not f.contact_phone.strip():
            issues.append(ValidationIssue("contact_phone", "Contact phone is required."))
        if not f.contact_email.strip():
            issues.append(ValidationIssue("contact_email", "Contact email is required."))
        if f.payment_method not in PAYMENT_METHODS:
            issues.append(ValidationIssue("payment_method", "Choose a payment method."))
        elif f.payment_method == "card":
            if f.card is None or self.card_processor is None:
                issues.append(ValidationIssue("card", "Card payment is not ready."))
            elif not f.card.postal_code.strip():
                issues.append(ValidationIssue("postal_code", "Postal code is required for card payments."))
        return issues

    def can_submit(self) -> bool:
        return not self.submitting and not self.validate()

    def order_payload(self, payment_intent_id: Optional[str] = None) -> Dict[str, Any]:
        totals = self.totals()
        f = self.form
        payload = {
            "deliveryAddress": f.address.cleaned(),
            "deliveryTime": f.delivery_time,
            "contactPhone": f.contact_phone.strip(),
            "contactEmail": f.contact_email.strip(),
            "paymentMethod": f.payment_method,
            "items": [
                {"id": l.product_id, "quantity": l.quantity, "price": l.price}
                for l in self.state.cart.lines()
            ],
            "subtotal": totals.subtotal,
            "deliveryFee": totals.delivery_fee,
            "tax": totals.tax,
            "total": totals.total,
        }
        if payment_intent_id:
            payload["paymentIntentId"] = payment_intent_id
        return payload

    # --- submission -------------------------------------------------------

    def place_order(self) -> CheckoutResult:
        if self.submitting:
            return self._fail(ErrorKind.VALIDATION, "An order is already being placed.")
        issues = self.validate()
        if issues:
            return self._fail(ErrorKind.VALIDATION, "Please fill in all required fields.", issues)

        self.submitting = True
        try:
            intent_id = None
            if self.form.payment_method == "card":
                intent_id = self._confirm_card_payment()
            order = self.api.create_order(self.order_payload(intent_id))
            if not isinstance(order, dict):
                raise ApiError(201, "Invalid response")
        except _PaymentFailed as e:
            return self._fail(ErrorKind.PAYMENT, f"Payment failed: {e}")
        except AuthenticationError:
            self.state.clear_credentials()
            return self._fail(
                ErrorKind.AUTHENTICATION, "Your session has expired. Please log in again.", redirect_to="login"
            )
        except NetworkError:
            return self._fail(ErrorKind.NETWORK, "Could not reach the store. Check your connection and try again.")
        except ApiError as e:
            log.warning("order submission rejected status=%s detail=%s", e.status_code, e.detail)
            return self._fail(ErrorKind.UPSTREAM, e.detail or "Failed to place order")
        except Exception:
            log.exception("order submission failed unexpectedly")
            return self._fail(ErrorKind.UPSTREAM, "Failed to place order. Please try again.")
        finally:
            self.submitting = False

        self.state.cart.clear()
        self.last_error = None
        log.info("order placed id=%s total=%s", order.get("id"), order.get("total"))
        return CheckoutResult(order=order, redirect_to="orders")

    def _confirm_card_payment(self) -> str:
        # must finish before the order is created; card orders assume payment succeeded
        amount = self.totals().amount_minor_units
        intent = self.api.create_payment_intent(amount, self.currency)
        f = self.form
        billing = {
            "name": self.state.user.get("name"),
            "email": f.contact_email.strip(),
            "phone": f.contact_phone.strip(),
        }
        confirmation = self.card_processor.confirm_card_payment(intent["clientSecret"], f.card, billing)
        if not confirmation.succeeded:
            log.info("card confirmation failed error=%s", confirmation.error)
            raise _PaymentFailed(confirmation.error or "Payment was not completed")
        return confirmation.intent_id

    def _fail(
        self,
        kind: ErrorKind,
        message: str,
        issues: Optional[List[ValidationIssue]] = None,
        redirect_to: Optional[str] = None,
    ) -> CheckoutResult:
        error = CheckoutError(kind=kind, message=message, issues=list(issues or []))
        self.last_error = error
        return CheckoutResult(error=error, redirect_to=redirect_to)


class _PaymentFailed(Exception):
    pass
