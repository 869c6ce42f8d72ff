import streamlit as st


def render_handoff_banner(status: str, case_id: str | None = None):
    if status == "handoff":
        st.error(
            "We’re transferring you to our Customer Experience Lead. "
            "Our team will follow up within 24 hours."
            + (f" Your case ID is **{case_id}**." if case_id else "")
        )
    elif status == "resolved":
        st.success(f"All set! Your case ID is **{case_id}**." if case_id else "All set!")
    elif status == "pending_case":
        st.warning("Your resolution is saved but we couldn't open your case yet.")
