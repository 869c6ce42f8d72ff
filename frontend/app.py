import streamlit as st
from state.session import init_session, new_conversation
from components.chat import render_chat
from components.handoff import render_handoff_banner

FLOW_LABELS = {
    None: "Help with an order",
    "shipping": "Where's my package?",
    "subscription": "Manage my subscription",
}

st.set_page_config(
    page_title="Resolution Center",
    page_icon="💬",
    layout="centered"
)

init_session()

st.title("💬 Resolution Center")

if "active_conversation" not in st.session_state:
    st.session_state.active_conversation = 0

with st.sidebar:
    st.header("Chats")

    flow_type = st.selectbox(
        "I need help with",
        options=list(FLOW_LABELS),
        format_func=lambda flow: FLOW_LABELS[flow],
    )
    if st.button("New chat", use_container_width=True):
        st.session_state.conversations.append(new_conversation(flow_type))
        st.session_state.active_conversation = len(st.session_state.conversations) - 1

    if st.session_state.conversations:
        labels = [f"Chat {idx + 1}" for idx in range(len(st.session_state.conversations))]
        active = st.radio(
            "Chats",
            options=list(range(len(labels))),
            index=st.session_state.active_conversation,
            format_func=lambda i: labels[i],
            label_visibility="collapsed"
        )
        st.session_state.active_conversation = active

        if st.button("Delete chat", use_container_width=True):
            delete_index = st.session_state.active_conversation
            st.session_state.conversations.pop(delete_index)
            if not st.session_state.conversations:
                st.session_state.conversations.append(new_conversation())
                st.session_state.active_conversation = 0
            else:
                st.session_state.active_conversation = max(0, delete_index - 1)

active_index = st.session_state.active_conversation
conversation = st.session_state.conversations[active_index]
render_handoff_banner(conversation.get("status"), (conversation.get("view") or {}).get("case_id"))
render_chat(active_index)
