"""
Resolution session: the mutable record of one customer's attempt.

A session is owned by one chat turn at a time (see ``storage.memory.session_lock``).
The ladder engine mutates it through ``resolution_hub.ladder.engine``; the
helpers here only cover order and item selection.
"""
import secrets
import string
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from resolution_hub.core.errors import InvalidStateError, ValidationError
from resolution_hub.core.policies import LadderType
from resolution_hub.models.order import CustomerIdentity, LineItem, OrderSnapshot

NegotiationState = Literal[
    "AWAITING_INTENT",
    "OFFER_PRESENTED",
    "ACCEPTED",
    "ESCALATED",
]

TERMINAL_STATES = ("ACCEPTED", "ESCALATED")

FlowType = Literal["order", "shipping", "subscription", "claudia"]


def generate_session_id() -> str:
    suffix = "".join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(7))
    return f"sess_{int(time.time() * 1000)}_{suffix}"


class NegotiationOutcome(BaseModel):
    """Result of a finished ladder, kept on the session until a case exists."""
    resolution_type: str
    case_type: str
    refund_amount: Optional[Decimal] = None
    refund_percentage: Optional[int] = None


class TransitionResult(BaseModel):
    """What one engine transition produced, for the caller to present or act on."""
    new_state: NegotiationState
    step: int = 0
    presented_message: str
    persona: str = "amy"
    offer_amount: Optional[Decimal] = None
    outcome: Optional[NegotiationOutcome] = None
    emit_case: bool = False


class ResolutionSession(BaseModel):
    session_id: str = Field(default_factory=generate_session_id)
    flow_type: Optional[FlowType] = None
    customer: Optional[CustomerIdentity] = None

    orders: list[OrderSnapshot] = Field(default_factory=list)
    selected_order: Optional[OrderSnapshot] = None
    selected_items: list[LineItem] = Field(default_factory=list)

    intent: Optional[str] = None
    ladder_type: Optional[LadderType] = None
    ladder_step: int = Field(default=0, ge=0)
    negotiation_state: NegotiationState = "AWAITING_INTENT"

    refund_amount: Decimal = Decimal("0")
    refund_percentage: int = 0
    outcome: Optional[NegotiationOutcome] = None
    case_id: Optional[str] = None

    messages: list[dict] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_terminal(self) -> bool:
        return self.negotiation_state in TERMINAL_STATES

    def add_message(self, role: str, content: str, persona: Optional[str] = None):
        entry = {"role": role, "content": content}
        if persona:
            entry["persona"] = persona
        self.messages.append(entry)

    def select_order(self, order_id: str, item_ids: Optional[list[str]] = None) -> OrderSnapshot:
        """
        Pick one of the looked-up orders. Clears items and any running ladder.

        When ``item_ids`` is given the items are checked against the new order
        before anything changes, so a rejected pick leaves the session as it was.
        """
        if self.is_terminal:
            raise InvalidStateError("Negotiation already finished for this session")

        order = next((o for o in self.orders if o.id == order_id or o.order_number == order_id), None)
        if order is None:
            raise ValidationError([f"Order {order_id} is not one of your orders"])
        items = _resolve_items(order, item_ids) if item_ids is not None else []

        self.selected_order = order
        self.selected_items = items
        self.intent = None
        self.ladder_type = None
        self.ladder_step = 0
        self.negotiation_state = "AWAITING_INTENT"
        return order

    def set_selected_items(self, item_ids: list[str]) -> list[LineItem]:
        """
        Replace the item selection.

        Changing items while an offer is on the table sends the ladder back to
        its first rung so no offer is priced against a stale total.
        """
        if self.is_terminal:
            raise InvalidStateError("Negotiation already finished for this session")
        if self.selected_order is None:
            raise InvalidStateError("Select an order before choosing items")

        items = _resolve_items(self.selected_order, item_ids)
        changed = [i.id for i in items] != [i.id for i in self.selected_items]
        self.selected_items = items
        if changed and self.negotiation_state == "OFFER_PRESENTED":
            self.ladder_step = 0
        return items


def _resolve_items(order: OrderSnapshot, item_ids: list[str]) -> list[LineItem]:
    errors = []
    items = []
    for item_id in dict.fromkeys(item_ids):
        item = order.find_item(item_id)
        if item is None:
            errors.append(f"Item {item_id} is not part of this order")
        elif not item.is_selectable:
            errors.append(f"{item.title} can't be selected for a resolution")
        else:
            items.append(item)
    if not item_ids:
        errors.append("Please select at least one item")
    if errors:
        raise ValidationError(errors)
    return items
