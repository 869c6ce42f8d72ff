"""
Customer chat flow endpoints.

One request is one chat turn. Every turn for a session runs under that
session's lock, loads the session, applies one step of the flow and saves it.
Offer transitions come from the ladder engine; when a transition finishes the
negotiation the case is emitted in the same turn. If emission fails the
finished outcome stays on the session and ``POST /{id}/case`` retries it.
"""
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Iterator, Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from resolution_hub.cases.emission import emit_case
from resolution_hub.core.errors import EmissionFailure, LookupFailure
from resolution_hub.core.policies import intents_for_flow
from resolution_hub.integrations.shopify_client import lookup_orders
from resolution_hub.ladder import engine, messages
from resolution_hub.ladder.state import FlowType, ResolutionSession
from resolution_hub.models.order import CustomerIdentity
from resolution_hub.storage import case_store
from resolution_hub.storage.memory import create_session, load_session, save_session, session_lock
from resolution_hub.utils.formatters import format_dollar_amount
from resolution_hub.utils.logger import get_logger
from resolution_hub.utils.validators import validate_customer_identification, validate_item_selection

logger = get_logger(__name__)

router = APIRouter(prefix="/v1")


class StartSessionRequest(BaseModel):
    flow_type: Optional[FlowType] = None


class IdentifyRequest(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    order_number: Optional[str] = None


class SelectOrderRequest(BaseModel):
    order_id: str
    item_ids: list[str] = Field(default_factory=list)


class IntentRequest(BaseModel):
    intent: str = Field(min_length=1)


class SessionResponse(BaseModel):
    session_id: str
    flow_type: Optional[str] = None
    negotiation_state: str
    reply: Optional[str] = None
    persona: Optional[str] = None
    intent: Optional[str] = None
    ladder_type: Optional[str] = None
    ladder_step: int = 0
    offer: Optional[dict[str, Any]] = None
    selected_order_id: Optional[str] = None
    selected_item_ids: list[str] = Field(default_factory=list)
    refund_amount: Optional[float] = None
    refund_percentage: Optional[int] = None
    resolution_type: Optional[str] = None
    case_id: Optional[str] = None
    orders: Optional[list[dict[str, Any]]] = None
    messages: list[dict] = Field(default_factory=list)


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def _view(session: ResolutionSession, reply: Optional[str] = None,
          persona: Optional[str] = None, include_orders: bool = False) -> SessionResponse:
    offer = engine.current_offer(session)
    if offer is not None:
        offer = {**offer, "amount": _money(offer["amount"])}
    outcome = session.outcome
    return SessionResponse(
        session_id=session.session_id,
        flow_type=session.flow_type,
        negotiation_state=session.negotiation_state,
        reply=reply,
        persona=persona,
        intent=session.intent,
        ladder_type=session.ladder_type,
        ladder_step=session.ladder_step,
        offer=offer,
        selected_order_id=session.selected_order.id if session.selected_order else None,
        selected_item_ids=[item.id for item in session.selected_items],
        refund_amount=_money(outcome.refund_amount) if outcome else None,
        refund_percentage=outcome.refund_percentage if outcome else None,
        resolution_type=outcome.resolution_type if outcome else None,
        case_id=session.case_id,
        orders=[order.summary() for order in session.orders] if include_orders else None,
        messages=session.messages,
    )


@contextmanager
def _turn(session_id: str) -> Iterator[ResolutionSession]:
    """Hold the session lock for one chat turn and save the session afterwards."""
    lock = session_lock(session_id)
    if lock is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    with lock:
        session = load_session(session_id)
        if session is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
        try:
            yield session
        finally:
            save_session(session)


def _emit_or_503(session: ResolutionSession):
    """Emit the case for a finished negotiation; on failure return the 503 response to send."""
    try:
        case_id = emit_case(session, case_store.create_case)
    except EmissionFailure as e:
        case_store.log_session_event(session.session_id, "error", "case_creation_failed", {"error": str(e)})
        view = _view(session, reply=messages.ERRORS["case_failed"], persona="amy")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=jsonable_encoder({"detail": str(e), "retryable": True, "session": view}),
        )
    case_store.log_session_event(session.session_id, "case", "case_created",
                                 {"caseId": case_id, "caseType": session.outcome.case_type})
    return None


@router.get("/health")
def health_check():
    return {"status": "healthy"}


@router.post("/sessions", response_model=SessionResponse)
def start_session(req: StartSessionRequest):
    session = create_session(req.flow_type)
    greeting = messages.WELCOME.get(req.flow_type or "default", messages.WELCOME["default"])
    session.add_message("assistant", messages.PERSONAS["amy"]["greeting"], persona="amy")
    session.add_message("assistant", greeting, persona="amy")
    save_session(session)

    try:
        case_store.record_session(session.session_id, req.flow_type)
    except Exception as e:
        logger.warning(f"⚠️ API: Could not record session {session.session_id}: {e}")

    return _view(session, reply=greeting, persona="amy")


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str):
    with _turn(session_id) as session:
        return _view(session, include_orders=True)


@router.post("/sessions/{session_id}/identify", response_model=SessionResponse)
def identify(session_id: str, req: IdentifyRequest):
    """Validate identification input, then look the customer's orders up."""
    validate_customer_identification(
        email=req.email, phone=req.phone, first_name=req.first_name, order_number=req.order_number
    )
    identity = CustomerIdentity(**req.model_dump())

    with _turn(session_id) as session:
        try:
            orders = lookup_orders(identity)
        except LookupFailure as e:
            logger.info(f"🔎 API: Lookup failed for session {session_id}: {e}")
            case_store.log_session_event(session_id, "error", "order_lookup_failed", {"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=messages.ERRORS["order_not_found"],
            ) from e

        if not identity.first_name and orders[0].customer_first_name:
            identity = identity.model_copy(update={"first_name": orders[0].customer_first_name})
        if not identity.email and orders[0].email:
            identity = identity.model_copy(update={"email": orders[0].email})

        session.customer = identity
        session.orders = orders
        reply = f"I found {len(orders)} order(s). Which one can I help you with?"
        session.add_message("assistant", reply, persona="amy")
        case_store.log_session_event(session_id, "step", "orders_found", {"count": len(orders)})
        return _view(session, reply=reply, persona="amy", include_orders=True)


@router.post("/sessions/{session_id}/order", response_model=SessionResponse)
def select_order(session_id: str, req: SelectOrderRequest):
    validate_item_selection(req.item_ids)
    with _turn(session_id) as session:
        running = session.negotiation_state == "OFFER_PRESENTED"
        same_order = session.selected_order is not None and req.order_id in (
            session.selected_order.id, session.selected_order.order_number
        )
        if running and same_order:
            session.set_selected_items(req.item_ids)
        else:
            session.select_order(req.order_id, req.item_ids)

        if running and same_order:
            offer = engine.current_offer(session)
            reply = (
                f"Thanks, I've updated your items. My offer is {offer['percentage']}% "
                f"({format_dollar_amount(offer['amount'])})."
            )
        elif not session.selected_order.is_within_guarantee():
            reply = messages.ERRORS["outside_guarantee"]
        else:
            reply = "Got it. What seems to be the problem?"
        session.add_message("assistant", reply, persona="amy")
        return _view(session, reply=reply, persona="amy")


@router.get("/sessions/{session_id}/intents")
def list_intents(session_id: str):
    with _turn(session_id) as session:
        return {"intents": [intent.model_dump() for intent in intents_for_flow(session.flow_type)]}


@router.post("/sessions/{session_id}/intent", response_model=SessionResponse)
def choose_intent(session_id: str, req: IntentRequest):
    with _turn(session_id) as session:
        if session.selected_order is not None and not session.selected_order.is_within_guarantee():
            reply = messages.ERRORS["outside_guarantee"]
            session.add_message("assistant", reply, persona="amy")
            return _view(session, reply=reply, persona="amy")

        result = engine.select_intent(session, req.intent)
        case_store.log_session_event(session_id, "step", "intent_selection",
                                     {"intent": req.intent, "ladderType": session.ladder_type})
        return _view(session, reply=result.presented_message, persona=result.persona)


@router.post("/sessions/{session_id}/accept", response_model=SessionResponse)
def accept_offer(session_id: str):
    with _turn(session_id) as session:
        result = engine.accept(session)
        case_store.log_session_event(session_id, "step", "offer_accepted", {
            "ladderStep": result.step,
            "percentage": result.outcome.refund_percentage,
            "amount": result.outcome.refund_amount,
        })
        failure = _emit_or_503(session)
        if failure is not None:
            return failure
        return _view(session, reply=result.presented_message, persona=result.persona)


@router.post("/sessions/{session_id}/decline", response_model=SessionResponse)
def decline_offer(session_id: str):
    with _turn(session_id) as session:
        previous_step = session.ladder_step
        result = engine.decline(session)
        if result.emit_case:
            case_store.log_session_event(session_id, "step", "escalated", {"ladderStep": previous_step})
            failure = _emit_or_503(session)
            if failure is not None:
                return failure
        else:
            case_store.log_session_event(session_id, "step", "offer_declined",
                                         {"ladderStep": previous_step, "nextStep": result.step})
        return _view(session, reply=result.presented_message, persona=result.persona)


@router.post("/sessions/{session_id}/case", response_model=SessionResponse)
def retry_case(session_id: str):
    """Retry case creation for a finished negotiation without re-running the ladder."""
    with _turn(session_id) as session:
        failure = _emit_or_503(session)
        if failure is not None:
            return failure
        return _view(session, reply=messages.case_created_message(session.case_id), persona="amy")
