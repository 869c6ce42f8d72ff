"""Shipment tracking lookup through ParcelPanel."""
from datetime import datetime, timezone
from typing import Optional

import requests

from resolution_hub.core.config import settings
from resolution_hub.core.errors import ValidationError
from resolution_hub.models.order import TrackingEvent, TrackingInfo
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)

# ParcelPanel status -> ours; unknown values pass through
STATUS_MAP = {
    "pending": "pending",
    "info_received": "pending",
    "in_transit": "in_transit",
    "out_for_delivery": "out_for_delivery",
    "delivered": "delivered",
    "failed_attempt": "failed_attempt",
    "exception": "exception",
    "expired": "expired",
}


def _placeholder(tracking_number: str, carrier: Optional[str]) -> TrackingInfo:
    now = datetime.now(timezone.utc).isoformat()
    return TrackingInfo(
        tracking_number=tracking_number,
        carrier=carrier or "Unknown",
        status="in_transit",
        status_description="Package is in transit",
        last_update=now,
        events=(
            TrackingEvent(
                timestamp=now,
                status="in_transit",
                description="Package is in transit to destination",
                location="Transit Hub",
            ),
        ),
    )


def _unknown(tracking_number: str, carrier: Optional[str]) -> TrackingInfo:
    return TrackingInfo(
        tracking_number=tracking_number,
        carrier=carrier or "Unknown",
        status="unknown",
        status_description="Unable to retrieve tracking information",
    )


def lookup_tracking(tracking_number: str, carrier: Optional[str] = None) -> TrackingInfo:
    """
    Current status and events for a parcel.

    Without an API key a placeholder in-transit record is returned; provider
    errors degrade to an ``unknown`` record instead of failing the chat turn.
    """
    if not tracking_number or not tracking_number.strip():
        raise ValidationError(["Tracking number is required"])
    tracking_number = tracking_number.strip()

    if not settings.PARCELPANEL_API_KEY:
        logger.info(f"📦 TRACKING: No ParcelPanel key, returning placeholder for {tracking_number}")
        return _placeholder(tracking_number, carrier)

    try:
        response = requests.post(
            settings.PARCELPANEL_URL,
            json={"tracking_number": tracking_number, "courier_code": carrier.lower() if carrier else None},
            headers={"Content-Type": "application/json", "API-Key": settings.PARCELPANEL_API_KEY},
            timeout=settings.HTTP_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"❌ TRACKING: ParcelPanel lookup failed for {tracking_number}: {e}")
        return _unknown(tracking_number, carrier)

    parcel = (payload.get("data") or [None])[0]
    if not parcel:
        logger.warning(f"⚠️ TRACKING: No parcel data for {tracking_number}")
        return TrackingInfo(
            tracking_number=tracking_number,
            carrier=carrier or "Unknown",
            status="not_found",
            status_description="Tracking information not found",
        )

    status = STATUS_MAP.get(parcel.get("status"), parcel.get("status") or "unknown")
    return TrackingInfo(
        tracking_number=parcel.get("tracking_number") or tracking_number,
        carrier=parcel.get("courier_name") or carrier or "Unknown",
        status=status,
        status_description=parcel.get("status_info") or parcel.get("status"),
        estimated_delivery=parcel.get("estimated_delivery_date"),
        last_update=(parcel.get("latest_event") or {}).get("time"),
        events=tuple(
            TrackingEvent(
                timestamp=event.get("time") or "",
                status=event.get("status") or status,
                description=event.get("description") or "",
                location=event.get("location"),
            )
            for event in parcel.get("events") or []
        ),
    )
