from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from resolution_hub.core.policies import is_china_carrier
from resolution_hub.integrations.tracking_client import lookup_tracking
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/tracking", tags=["tracking"])


class TrackingLookupRequest(BaseModel):
    tracking_number: str = Field(alias="trackingNumber")
    carrier: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


@router.post("/lookup")
def tracking_lookup(request: TrackingLookupRequest):
    info = lookup_tracking(request.tracking_number, request.carrier)
    logger.info(f"API: Tracking {info.tracking_number} is {info.status}")
    return {
        "success": True,
        "tracking": info.model_dump(mode="json"),
        "isChinaCarrier": is_china_carrier(info.carrier),
    }
