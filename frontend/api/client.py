import requests
import os

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000/v1")


class ApiError(Exception):
    """Backend answered with an error status. ``detail`` is the server's message (or message list)."""

    def __init__(self, status_code: int, detail, payload: dict | None = None):
        super().__init__(detail if isinstance(detail, str) else "; ".join(map(str, detail)))
        self.status_code = status_code
        self.detail = detail
        self.payload = payload or {}

    @property
    def retryable(self) -> bool:
        return bool(self.payload.get("retryable"))


def _call(method: str, path: str, payload: dict | None = None, timeout: int = 30) -> dict:
    response = requests.request(method, f"{BACKEND_URL}{path}", json=payload, timeout=timeout)
    if response.status_code >= 400:
        try:
            body = response.json()
        except ValueError:
            body = {"detail": response.text or response.reason}
        raise ApiError(response.status_code, body.get("detail", "Request failed"), body)
    return response.json()


def start_session(flow_type: str | None = None) -> dict:
    return _call("POST", "/sessions", {"flow_type": flow_type})


def identify_customer(session_id: str, email: str = None, phone: str = None,
                      first_name: str = None, order_number: str = None) -> dict:
    """
    Send the identification form and look the customer's orders up.

    Returns:
        session view including ``orders``
    """
    payload = {
        "email": email or None,
        "phone": phone or None,
        "first_name": first_name or None,
        "order_number": order_number or None,
    }
    return _call("POST", f"/sessions/{session_id}/identify", payload, timeout=60)


def select_order(session_id: str, order_id: str, item_ids: list[str]) -> dict:
    return _call("POST", f"/sessions/{session_id}/order", {"order_id": order_id, "item_ids": item_ids})


def get_intents(session_id: str) -> list[dict]:
    return _call("GET", f"/sessions/{session_id}/intents")["intents"]


def choose_intent(session_id: str, intent: str) -> dict:
    return _call("POST", f"/sessions/{session_id}/intent", {"intent": intent})


def accept_offer(session_id: str) -> dict:
    return _call("POST", f"/sessions/{session_id}/accept")


def decline_offer(session_id: str) -> dict:
    return _call("POST", f"/sessions/{session_id}/decline")


def retry_case(session_id: str) -> dict:
    return _call("POST", f"/sessions/{session_id}/case")
