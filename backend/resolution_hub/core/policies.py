"""
Policy configuration: business rules, offer ladders and SLA limits.

Loaded once at import. Nothing here is rebuilt per request; the engine reads
``LADDERS`` and ``INTENTS`` directly.
"""
import re
from types import MappingProxyType
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

LadderType = Literal["refund", "shipping", "subscription"]
LADDER_TYPES: tuple[str, ...] = ("refund", "shipping", "subscription")


POLICY_CONFIG = MappingProxyType({
    # Guarantee period in days
    "GUARANTEE_DAYS": 90,
    # Fulfillment cutoff in hours (for order cancellation)
    "FULFILLMENT_CUTOFF_HOURS": 10,
    # In-transit voice escalation after X days
    "IN_TRANSIT_VOICE_DAYS": 6,
    # In-transit automatic escalation after X days
    "IN_TRANSIT_ESCALATE_DAYS": 15,
    # Refund ladder percentages
    "REFUND_LADDER": (20, 30, 40, 50),
    # Shipping ladder: (refund %, includes reship)
    "SHIPPING_LADDER": ((10, True), (20, True)),
    # Subscription discount ladder
    "SUBSCRIPTION_LADDER": (10, 15, 20),
    "MAX_BULK_SELECT": 100,
    "ITEMS_PER_PAGE": 50,
})

SLA_CONFIG = MappingProxyType({
    "TARGET_HOURS": 24,
    "WARNING_HOURS": 16,
    "ESCALATION_HOURS": 48,
})


class Rung(BaseModel):
    """One offer on a ladder."""
    model_config = ConfigDict(frozen=True)

    percentage: int
    includes_reship: bool = False


def _build_ladders() -> MappingProxyType:
    return MappingProxyType({
        "refund": tuple(Rung(percentage=p) for p in POLICY_CONFIG["REFUND_LADDER"]),
        "shipping": tuple(
            Rung(percentage=p, includes_reship=reship)
            for p, reship in POLICY_CONFIG["SHIPPING_LADDER"]
        ),
        "subscription": tuple(Rung(percentage=p) for p in POLICY_CONFIG["SUBSCRIPTION_LADDER"]),
    })


LADDERS = _build_ladders()


class IntentOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    description: str
    icon: str
    ladder_type: LadderType


INTENTS: tuple[IntentOption, ...] = (
    IntentOption(id="refund", label="I'd like a refund",
                 description="Get a full or partial refund", icon="💰", ladder_type="refund"),
    IntentOption(id="wrong_item", label="I received the wrong item",
                 description="We'll make it right", icon="📦", ladder_type="shipping"),
    IntentOption(id="damaged", label="Item arrived damaged",
                 description="Report damage for replacement", icon="💔", ladder_type="shipping"),
    IntentOption(id="missing", label="Item is missing from order",
                 description="Report missing items", icon="❓", ladder_type="shipping"),
    IntentOption(id="not_working", label="It's not working as expected",
                 description="Get help with your product", icon="🔧", ladder_type="refund"),
    IntentOption(id="subscription", label="I want to change my subscription",
                 description="Pause, modify, or cancel", icon="🔄", ladder_type="subscription"),
)

INTENT_LADDERS = MappingProxyType({intent.id: intent.ladder_type for intent in INTENTS})

SHIPPING_INTENTS = ("wrong_item", "damaged", "missing")


def intents_for_flow(flow_type: Optional[str]) -> list[IntentOption]:
    """Intents offered to the customer for the chosen entry flow."""
    if flow_type == "subscription":
        return [i for i in INTENTS if i.id == "subscription"]
    if flow_type == "shipping":
        return [i for i in INTENTS if i.id in SHIPPING_INTENTS]
    return list(INTENTS)


CASE_ID_PREFIXES = MappingProxyType({
    "refund": "REF",
    "shipping": "SHP",
    "subscription": "SUB",
    "return": "RET",
    "manual": "MAN",
})
DEFAULT_CASE_PREFIX = "CAS"


CHINA_CARRIERS = (
    "yanwen",
    "china-post",
    "4px",
    "cainiao",
    "yun-express",
    "sfb2c",
    "china-ems",
)


def is_china_carrier(carrier: str) -> bool:
    normalized = re.sub(r"[^a-z0-9]", "", (carrier or "").lower())
    if not normalized:
        return False
    for known in CHINA_CARRIERS:
        compact = known.replace("-", "")
        if compact in normalized or normalized in compact:
            return True
    return False
