"""
Case wire models shared by the chat flow, the case store and the hub API.

Field names on the wire are camelCase (``sessionId``, ``resolutionType`` ...)
to stay compatible with the reporting side; Python code uses snake_case.
"""
from decimal import Decimal
from typing import Annotated, Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

CaseType = Literal["refund", "shipping", "subscription", "return", "manual"]

CaseStatus = Literal["pending", "in_progress", "completed", "cancelled"]

ResolutionType = Literal[
    "full_refund",
    "partial_refund",
    "reship",
    "partial_refund_reship",
    "discount",
    "return_refund",
    "subscription_discount",
    "subscription_cancel",
    "escalated",
    "resolved_in_app",
    "other",
]

# Decimal internally, plain JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateCaseRequest(CamelModel):
    session_id: str = Field(min_length=1)
    case_type: str = Field(min_length=1)
    customer_email: str = Field(min_length=1)
    customer_name: str = "Customer"
    customer_phone: Optional[str] = None
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    order_total: Optional[Money] = None
    selected_item_ids: list[str] = Field(
        default_factory=list,
        alias="selectedItemIds",
        validation_alias=AliasChoices("selectedItemIds", "selectedItems", "selected_item_ids"),
    )
    intent: Optional[str] = None
    resolution_type: Optional[str] = None
    refund_amount: Optional[Money] = None
    refund_percentage: Optional[int] = None
    tracking_number: Optional[str] = None
    tracking_status: Optional[str] = None
    carrier_name: Optional[str] = None
    notes: Optional[str] = None


class CreateCaseResponse(CamelModel):
    success: bool
    case_id: Optional[str] = None
    error: Optional[str] = None


class CaseData(CamelModel):
    case_id: str
    session_id: Optional[str] = None
    case_type: str
    status: str
    resolution_type: Optional[str] = None
    customer_email: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    order_total: Optional[Money] = None
    selected_item_ids: list[str] = Field(default_factory=list, alias="selectedItemIds")
    intent: Optional[str] = None
    refund_amount: Optional[Money] = None
    refund_percentage: Optional[int] = None
    tracking_number: Optional[str] = None
    tracking_status: Optional[str] = None
    carrier_name: Optional[str] = None
    assigned_to: Optional[int] = None
    assigned_to_name: Optional[str] = None
    due_date: Optional[str] = None
    root_cause: Optional[str] = None
    notes: Optional[str] = None
    created_at: str
    updated_at: str
    completed_at: Optional[str] = None


class CaseComment(CamelModel):
    id: int
    case_id: str
    user_id: Optional[int] = None
    user_name: str = "System"
    content: str
    is_internal: bool = False
    created_at: str


class CaseTimelineEvent(CamelModel):
    id: int
    case_id: str
    event_type: str
    description: str
    user_id: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: str


class CaseDetailResponse(CamelModel):
    success: bool = True
    case: CaseData
    comments: list[CaseComment] = Field(default_factory=list)
    timeline: list[CaseTimelineEvent] = Field(default_factory=list)


class CaseListItem(CamelModel):
    case_id: str
    case_type: str
    status: str
    customer_name: Optional[str] = None
    customer_email: str
    order_number: Optional[str] = None
    resolution_type: Optional[str] = None
    assigned_to: Optional[int] = None
    due_date: Optional[str] = None
    created_at: str


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class CasesListResponse(CamelModel):
    success: bool = True
    cases: list[CaseListItem]
    pagination: Pagination


class CaseUpdateRequest(CamelModel):
    status: Optional[CaseStatus] = None
    assigned_to: Optional[int] = None
    root_cause: Optional[str] = None
    notes: Optional[str] = None
    resolution_type: Optional[ResolutionType] = None


class CommentRequest(CamelModel):
    content: str = Field(min_length=1)
    is_internal: bool = True


class HubStats(CamelModel):
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    completed_today: int = 0
    avg_time: str = "0h"
    all: int = 0
    shipping: int = 0
    refund: int = 0
    subscription: int = 0
    manual: int = 0
