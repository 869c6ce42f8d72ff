import streamlit as st
from api.client import (
    ApiError,
    accept_offer,
    choose_intent,
    decline_offer,
    get_intents,
    identify_customer,
    retry_case,
    select_order,
    start_session,
)
from state.session import conversation_status

PERSONA_AVATARS = {"amy": "👩‍💼", "sarah": "👩‍💻", "claudia": "👩‍⚕️"}


def format_offer_card(offer: dict) -> str:
    """Markdown for the offer currently on the table"""
    percentage = offer.get("percentage", 0)
    amount = offer.get("amount") or 0
    ladder_type = offer.get("ladder_type")

    if ladder_type == "subscription":
        headline = f"### {percentage}% off your next order"
    elif offer.get("includes_reship"):
        headline = f"### {percentage}% refund (${amount:,.2f}) + free reship"
    else:
        headline = f"### {percentage}% refund (${amount:,.2f})"

    lines = [
        f"**Offer {offer.get('step', 0) + 1} of {offer.get('ladder_length', 1)}**",
        "",
        headline,
    ]
    if offer.get("description"):
        lines += ["", offer["description"]]
    if offer.get("is_last_step"):
        lines += ["", "*This is the best we can offer here. You can still ask to speak to someone.*"]
    return "\n".join(lines)


def format_order_label(order: dict) -> str:
    label = f"{order['display_name']} · ${float(order['total_price']):,.2f} · {order['item_count']} item(s)"
    if not order.get("is_within_guarantee", True):
        label += " · outside 90-day guarantee"
    return label


def current_stage(conversation: dict) -> str:
    """Which step of the flow the widget should render next"""
    view = conversation.get("view")
    if not view:
        return "start"
    if not conversation.get("orders"):
        return "identify"
    state = view.get("negotiation_state")
    if state == "OFFER_PRESENTED":
        return "offer"
    if state in ("ACCEPTED", "ESCALATED"):
        return "done" if view.get("case_id") else "retry_case"
    if not view.get("selected_item_ids"):
        return "select_order"
    return "intent"


def _apply(conversation: dict, view: dict):
    conversation["view"] = view
    conversation["session_id"] = view["session_id"]
    conversation["messages"] = view.get("messages", [])
    if view.get("orders") is not None:
        conversation["orders"] = view["orders"]
    conversation["status"] = conversation_status(view)
    conversation["error"] = None


def _run(conversation: dict, action, *args, **kwargs):
    try:
        view = action(*args, **kwargs)
    except ApiError as e:
        session_view = e.payload.get("session")
        if session_view:
            _apply(conversation, session_view)
        conversation["error"] = e.detail if isinstance(e.detail, str) else "\n".join(f"• {m}" for m in e.detail)
        return
    except Exception as e:
        conversation["error"] = f"❌ Error processing request: {str(e)}"
        return
    _apply(conversation, view)
    st.rerun()


def _render_identify(conversation: dict):
    with st.form(f"identify_{conversation['session_id']}"):
        st.markdown("**Let's find your order**")
        first_name = st.text_input("First name")
        email = st.text_input("Email")
        phone = st.text_input("Phone (optional)")
        order_number = st.text_input("Order number (optional)")
        if st.form_submit_button("Find my order"):
            _run(conversation, identify_customer, conversation["session_id"],
                 email=email, phone=phone, first_name=first_name, order_number=order_number)


def _render_order_picker(conversation: dict):
    orders = conversation["orders"]
    order_index = st.radio(
        "Which order?",
        options=list(range(len(orders))),
        format_func=lambda i: format_order_label(orders[i]),
        key=f"order_{conversation['session_id']}",
    )
    order = orders[order_index]
    selectable = [item for item in order["items"] if item["is_selectable"]]
    chosen = st.multiselect(
        "Which item(s)?",
        options=[item["id"] for item in selectable],
        format_func=lambda item_id: next(i["title"] for i in selectable if i["id"] == item_id),
        key=f"items_{conversation['session_id']}_{order['id']}",
    )
    if st.button("Continue", disabled=not chosen, use_container_width=True):
        _run(conversation, select_order, conversation["session_id"], order["id"], chosen)


def _render_intents(conversation: dict):
    if not conversation.get("intents"):
        try:
            conversation["intents"] = get_intents(conversation["session_id"])
        except ApiError as e:
            conversation["error"] = str(e)
            return
    for intent in conversation["intents"]:
        if st.button(f"{intent['icon']} {intent['label']}", key=f"intent_{intent['id']}",
                     help=intent["description"], use_container_width=True):
            _run(conversation, choose_intent, conversation["session_id"], intent["id"])


def _render_offer(conversation: dict):
    offer = conversation["view"]["offer"]
    with st.container(border=True):
        st.markdown(format_offer_card(offer))
        accept_col, decline_col = st.columns(2)
        with accept_col:
            if st.button("✅ Yes, I accept", type="primary", use_container_width=True):
                _run(conversation, accept_offer, conversation["session_id"])
        with decline_col:
            label = "🙋 Speak to someone" if offer.get("is_last_step") else "🔁 Better offer"
            if st.button(label, use_container_width=True):
                _run(conversation, decline_offer, conversation["session_id"])


def render_chat(conversation_index: int):
    """Render the guided resolution flow for one conversation"""
    conversation = st.session_state.conversations[conversation_index]

    if current_stage(conversation) == "start":
        _run(conversation, start_session, conversation.get("flow_type"))

    for msg in conversation.get("messages", []):
        avatar = PERSONA_AVATARS.get(msg.get("persona")) if msg["role"] == "assistant" else None
        with st.chat_message(msg["role"], avatar=avatar):
            st.markdown(msg["content"])

    if conversation.get("error"):
        st.error(conversation["error"])

    stage = current_stage(conversation)
    if stage == "identify":
        _render_identify(conversation)
    elif stage == "select_order":
        _render_order_picker(conversation)
    elif stage == "intent":
        _render_intents(conversation)
    elif stage == "offer":
        _render_offer(conversation)
    elif stage == "retry_case":
        if st.button("Try again", use_container_width=True):
            _run(conversation, retry_case, conversation["session_id"])
