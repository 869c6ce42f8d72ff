"""
Ladder negotiation engine.

Walks a customer through successive concession offers for one issue:

    AWAITING_INTENT -> OFFER_PRESENTED(step) -> ACCEPTED
                                             -> OFFER_PRESENTED(step + 1)
                                             -> ESCALATED (decline on last rung)

Transitions are synchronous and perform no I/O. Each one checks its
preconditions before touching the session, so a rejected call leaves the
session exactly as it was. Case creation is signalled through
``TransitionResult.emit_case`` and carried out by ``cases.emission``.
"""
from decimal import Decimal
from typing import Iterable, Optional

from resolution_hub.core.errors import InvalidStateError
from resolution_hub.core.policies import INTENT_LADDERS, LADDERS, Rung
from resolution_hub.ladder import messages
from resolution_hub.ladder.state import NegotiationOutcome, ResolutionSession, TransitionResult
from resolution_hub.models.order import LineItem
from resolution_hub.utils.formatters import to_money
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LADDER_TYPE = "refund"


def get_ladder(ladder_type: str) -> tuple[Rung, ...]:
    try:
        return LADDERS[ladder_type]
    except KeyError:
        raise InvalidStateError(f"Unknown ladder type '{ladder_type}'") from None


def ladder_type_for_intent(intent: str) -> str:
    """Map an intent id to its ladder; anything unrecognised negotiates as a refund."""
    return INTENT_LADDERS.get(intent, DEFAULT_LADDER_TYPE)


def items_total(items: Iterable[LineItem]) -> Decimal:
    return sum((item.unit_price * item.quantity for item in items), Decimal("0"))


def offer_amount(items: Iterable[LineItem], rung: Rung) -> Decimal:
    return to_money(items_total(items) * rung.percentage / Decimal(100))


def derive_resolution_type(ladder_type: str, rung: Rung) -> str:
    if rung.includes_reship:
        return "partial_refund_reship"
    if rung.percentage >= 100:
        return "full_refund"
    if ladder_type == "subscription":
        return "subscription_discount"
    return "partial_refund"


def _active_rung(session: ResolutionSession, action: str) -> tuple[tuple[Rung, ...], Rung]:
    if session.ladder_type is None:
        raise InvalidStateError(f"Cannot {action}: no offer ladder is active")
    if session.negotiation_state != "OFFER_PRESENTED":
        raise InvalidStateError(
            f"Cannot {action}: negotiation is {session.negotiation_state}"
        )
    ladder = get_ladder(session.ladder_type)
    if not 0 <= session.ladder_step < len(ladder):
        raise InvalidStateError(
            f"Ladder step {session.ladder_step} is outside the {session.ladder_type} ladder"
        )
    return ladder, ladder[session.ladder_step]


def current_offer(session: ResolutionSession) -> Optional[dict]:
    """Describe the offer on the table, or None when no offer is being presented."""
    if session.ladder_type is None or session.negotiation_state != "OFFER_PRESENTED":
        return None
    ladder, rung = _active_rung(session, "read offer")
    return {
        "ladder_type": session.ladder_type,
        "step": session.ladder_step,
        "ladder_length": len(ladder),
        "percentage": rung.percentage,
        "includes_reship": rung.includes_reship,
        "amount": offer_amount(session.selected_items, rung),
        "description": messages.offer_description(session.ladder_type, rung),
        "is_last_step": session.ladder_step == len(ladder) - 1,
    }


def select_intent(session: ResolutionSession, intent: str) -> TransitionResult:
    """Start the ladder that matches the customer's declared issue."""
    if session.is_terminal:
        raise InvalidStateError("Negotiation already finished for this session")
    if session.selected_order is None:
        raise InvalidStateError("Select an order before choosing an issue")
    if not session.selected_items:
        raise InvalidStateError("Select at least one item before choosing an issue")

    ladder_type = ladder_type_for_intent(intent)
    rung = get_ladder(ladder_type)[0]
    amount = offer_amount(session.selected_items, rung)

    session.intent = intent
    session.ladder_type = ladder_type
    session.ladder_step = 0
    session.negotiation_state = "OFFER_PRESENTED"
    session.refund_amount = Decimal("0")
    session.refund_percentage = 0
    session.outcome = None

    logger.info(f"🪜 LADDER: session {session.session_id} intent={intent} -> {ladder_type} ladder")

    message = messages.opening_offer_message(ladder_type, rung, amount)
    session.add_message("assistant", message, persona="amy")
    return TransitionResult(
        new_state="OFFER_PRESENTED",
        step=0,
        presented_message=message,
        offer_amount=amount,
    )


def accept(session: ResolutionSession) -> TransitionResult:
    """Customer takes the current offer."""
    _, rung = _active_rung(session, "accept")

    amount = offer_amount(session.selected_items, rung)
    outcome = NegotiationOutcome(
        resolution_type=derive_resolution_type(session.ladder_type, rung),
        case_type=session.ladder_type,
        refund_amount=amount,
        refund_percentage=rung.percentage,
    )

    session.refund_amount = amount
    session.refund_percentage = rung.percentage
    session.outcome = outcome
    session.negotiation_state = "ACCEPTED"

    logger.info(
        f"🤝 LADDER: session {session.session_id} accepted step {session.ladder_step} "
        f"({rung.percentage}% = {amount}, {outcome.resolution_type})"
    )

    message = messages.accepted_message(session.ladder_type, rung, amount)
    session.add_message("user", "✅ Yes, I accept this offer")
    session.add_message("assistant", message, persona="amy")
    return TransitionResult(
        new_state="ACCEPTED",
        step=session.ladder_step,
        presented_message=message,
        offer_amount=amount,
        outcome=outcome,
        emit_case=True,
    )


def decline(session: ResolutionSession) -> TransitionResult:
    """Customer asks for a better offer; past the last rung the case goes to a human."""
    ladder, _ = _active_rung(session, "decline")

    if session.ladder_step == len(ladder) - 1:
        outcome = NegotiationOutcome(
            resolution_type="escalated",
            case_type=session.ladder_type,
        )
        session.outcome = outcome
        session.negotiation_state = "ESCALATED"

        logger.warning(
            f"🚨 LADDER: session {session.session_id} declined last {session.ladder_type} offer, escalating"
        )

        message = messages.escalation_message()
        session.add_message("user", "No, I'd like to speak to someone")
        session.add_message("assistant", message, persona="sarah")
        return TransitionResult(
            new_state="ESCALATED",
            step=session.ladder_step,
            presented_message=message,
            persona="sarah",
            outcome=outcome,
            emit_case=True,
        )

    next_step = session.ladder_step + 1
    rung = ladder[next_step]
    amount = offer_amount(session.selected_items, rung)
    session.ladder_step = next_step

    logger.info(
        f"🪜 LADDER: session {session.session_id} declined, moving to step {next_step} ({rung.percentage}%)"
    )

    message = messages.better_offer_message(rung, amount)
    session.add_message("user", "I'd like a better offer")
    session.add_message("assistant", message, persona="amy")
    return TransitionResult(
        new_state="OFFER_PRESENTED",
        step=next_step,
        presented_message=message,
        offer_amount=amount,
    )
