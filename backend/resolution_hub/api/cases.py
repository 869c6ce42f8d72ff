from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from resolution_hub.core.auth import get_current_user
from resolution_hub.models.case import (
    CaseDetailResponse,
    CasesListResponse,
    CaseUpdateRequest,
    CommentRequest,
    CreateCaseRequest,
    CreateCaseResponse,
)
from resolution_hub.storage import case_store
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/cases", tags=["cases"])


@router.post("", response_model=CreateCaseResponse, response_model_by_alias=True)
def create_case(request: CreateCaseRequest):
    """Open a case. Called by the chat widget, so it is not behind hub auth."""
    logger.info(f"API: Create {request.case_type} case for session {request.session_id}")
    try:
        return case_store.create_case(request)
    except Exception as e:
        logger.error(f"API: Case creation failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create case",
        )


@router.get("", response_model=CasesListResponse, response_model_by_alias=True)
def list_cases(
    type: Optional[str] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None),
    sort: str = Query(default="created_desc"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: dict = Depends(get_current_user),
):
    return case_store.list_cases(
        case_type=type,
        status=status_filter,
        search=search,
        sort_by=sort,
        page=page,
        limit=limit,
    )


@router.get("/{case_id}", response_model=CaseDetailResponse, response_model_by_alias=True)
def get_case(case_id: str, user: dict = Depends(get_current_user)):
    detail = case_store.get_case(case_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return detail


@router.put("/{case_id}")
def update_case(case_id: str, changes: CaseUpdateRequest, user: dict = Depends(get_current_user)):
    logger.info(f"API: {user['username']} updating case {case_id}")
    updated = case_store.update_case(case_id, changes, user)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return {"success": True, "case": updated.model_dump(by_alias=True, mode="json")}


@router.post("/{case_id}/comments")
def add_comment(case_id: str, comment: CommentRequest, user: dict = Depends(get_current_user)):
    if not comment.content.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Comment content is required")
    created = case_store.add_comment(case_id, comment.content.strip(), user, comment.is_internal)
    if created is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return {"success": True, "comment": created.model_dump(by_alias=True, mode="json")}
