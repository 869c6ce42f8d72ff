"""
Normalized order data produced by the order-lookup collaborator.

Snapshots are frozen: the negotiation reads them but never changes them.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from resolution_hub.core.policies import POLICY_CONFIG
from resolution_hub.utils.validators import days_since


class CustomerIdentity(BaseModel):
    """What the customer typed into the identification form."""
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    order_number: Optional[str] = None
    address1: Optional[str] = None
    country: str = "US"


class TrackingEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str
    status: str
    description: str
    location: Optional[str] = None


class TrackingInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    tracking_number: str
    tracking_url: Optional[str] = None
    carrier: str = "Unknown"
    status: str = "unknown"
    status_description: Optional[str] = None
    estimated_delivery: Optional[str] = None
    last_update: Optional[str] = None
    events: tuple[TrackingEvent, ...] = ()


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    sku: Optional[str] = None
    quantity: int = Field(default=1, ge=0)
    unit_price: Decimal = Decimal("0")
    is_selectable: bool = True
    variant_title: Optional[str] = None
    product_type: Optional[str] = None
    image: Optional[str] = None
    is_digital: bool = False
    is_free: bool = False
    is_upsell: bool = False

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class OrderSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    order_number: str
    display_name: Optional[str] = None
    total_price: Decimal = Decimal("0")
    currency: str = "USD"
    items: tuple[LineItem, ...] = ()
    created_at: datetime
    fulfillment_status: str = "unfulfilled"
    financial_status: Optional[str] = None
    email: Optional[str] = None
    customer_first_name: Optional[str] = None
    tracking: Optional[TrackingInfo] = None
    has_subscription: bool = False

    @property
    def selectable_items(self) -> list[LineItem]:
        return [item for item in self.items if item.is_selectable]

    def find_item(self, item_id: str) -> Optional[LineItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def days_since_order(self, now: Optional[datetime] = None) -> int:
        return days_since(self.created_at, now)

    def is_within_guarantee(self, now: Optional[datetime] = None) -> bool:
        return self.days_since_order(now) <= POLICY_CONFIG["GUARANTEE_DAYS"]

    def can_cancel(self, now: Optional[datetime] = None) -> bool:
        return self.days_since_order(now) < 1 and self.fulfillment_status == "unfulfilled"

    def summary(self, now: Optional[datetime] = None) -> dict:
        """Flat view used by the chat API when listing candidate orders."""
        now = now or datetime.now(timezone.utc)
        return {
            "id": self.id,
            "order_number": self.order_number,
            "display_name": self.display_name or f"#{self.order_number}",
            "created_at": self.created_at.isoformat(),
            "total_price": str(self.total_price),
            "currency": self.currency,
            "fulfillment_status": self.fulfillment_status,
            "item_count": len(self.items),
            "items": [
                {
                    "id": item.id,
                    "title": item.title,
                    "quantity": item.quantity,
                    "unit_price": str(item.unit_price),
                    "is_selectable": item.is_selectable,
                }
                for item in self.items
            ],
            "days_since_order": self.days_since_order(now),
            "is_within_guarantee": self.is_within_guarantee(now),
            "can_cancel": self.can_cancel(now),
            "has_subscription": self.has_subscription,
        }
