import streamlit as st


def new_conversation(flow_type: str | None = None) -> dict:
    return {
        "session_id": None,
        "flow_type": flow_type,
        "messages": [],
        "orders": [],
        "intents": [],
        "view": None,
        "status": "in_progress",
        "error": None,
    }


def init_session():
    if "conversations" not in st.session_state:
        st.session_state.conversations = []

    if not st.session_state.conversations:
        st.session_state.conversations.append(new_conversation())


def conversation_status(view: dict | None) -> str:
    """Map the backend negotiation state onto the banner status."""
    if not view:
        return "in_progress"
    state = view.get("negotiation_state")
    if state == "ESCALATED":
        return "handoff"
    if state == "ACCEPTED":
        return "resolved" if view.get("case_id") else "pending_case"
    return "in_progress"
