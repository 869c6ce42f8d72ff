"""
Case emission: turns a finished negotiation into a case-creation request.

The persistence collaborator is passed in as ``create_case``; it takes a
``CreateCaseRequest`` and returns a ``CreateCaseResponse`` (the case store in
production, a stub in tests). Emission is idempotent per session: once
``session.case_id`` is set no second case is created.
"""
import secrets
import string
import time
from typing import Callable, Optional

from resolution_hub.core.errors import EmissionFailure, InvalidStateError, ValidationError
from resolution_hub.core.policies import CASE_ID_PREFIXES, DEFAULT_CASE_PREFIX
from resolution_hub.ladder import messages
from resolution_hub.ladder.state import NegotiationOutcome, ResolutionSession
from resolution_hub.models.case import CreateCaseRequest, CreateCaseResponse
from resolution_hub.models.order import CustomerIdentity
from resolution_hub.utils.formatters import to_base36, to_money
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)

CreateCase = Callable[[CreateCaseRequest], CreateCaseResponse]


def generate_case_id(case_type: str, now_ms: Optional[int] = None) -> str:
    """``PREFIX-BASE36TIMESTAMP-RANDOM3``, all uppercase."""
    prefix = CASE_ID_PREFIXES.get(case_type, DEFAULT_CASE_PREFIX)
    timestamp = to_base36(now_ms if now_ms is not None else int(time.time() * 1000))
    random_part = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(3))
    return f"{prefix}-{timestamp}-{random_part}"


def build_case_request(
    session: ResolutionSession,
    outcome: NegotiationOutcome,
    customer: Optional[CustomerIdentity] = None,
) -> CreateCaseRequest:
    customer = customer or session.customer
    if customer is None or not customer.email:
        raise ValidationError(["A customer email is required to open a case"])

    order = session.selected_order
    return CreateCaseRequest(
        session_id=session.session_id,
        case_type=outcome.case_type,
        customer_email=customer.email,
        customer_name=customer.first_name or "Customer",
        customer_phone=customer.phone,
        order_id=order.id if order else None,
        order_number=order.order_number if order else None,
        order_total=to_money(order.total_price) if order else None,
        selected_item_ids=[item.id for item in session.selected_items],
        intent=session.intent,
        resolution_type=outcome.resolution_type,
        refund_amount=to_money(outcome.refund_amount) if outcome.refund_amount is not None else None,
        refund_percentage=outcome.refund_percentage,
    )


def emit_case(
    session: ResolutionSession,
    create_case: CreateCase,
    customer: Optional[CustomerIdentity] = None,
) -> str:
    """
    Persist the session's negotiation outcome as a case.

    Safe to call again after a failure: the stored outcome is re-sent as-is.

    Returns:
        The case id (existing one if the case was already created)

    Raises:
        InvalidStateError: when the negotiation has not finished
        ValidationError: when no customer email is known
        EmissionFailure: when the collaborator fails; session is unchanged
    """
    if session.case_id:
        logger.info(f"♻️ EMISSION: Session {session.session_id} already has case {session.case_id}")
        return session.case_id

    if session.outcome is None:
        raise InvalidStateError("No negotiation outcome to turn into a case")

    request = build_case_request(session, session.outcome, customer)

    try:
        response = create_case(request)
    except Exception as e:
        logger.error(f"❌ EMISSION: Case creation failed for session {session.session_id}: {e}", exc_info=True)
        raise EmissionFailure(f"Case creation failed: {e}", session_id=session.session_id) from e

    if not response.success or not response.case_id:
        logger.error(f"❌ EMISSION: Case store rejected session {session.session_id}: {response.error}")
        raise EmissionFailure(response.error or "Failed to create case", session_id=session.session_id)

    session.case_id = response.case_id
    session.add_message("assistant", messages.case_created_message(response.case_id), persona="amy")
    logger.info(f"📁 EMISSION: Case {response.case_id} created for session {session.session_id}")
    return response.case_id
