"""
Case persistence: the create/read/update side of cases, comments, timeline
and chat sessions.
"""
import json
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import func, or_

from resolution_hub.cases.emission import generate_case_id
from resolution_hub.core.policies import POLICY_CONFIG, SLA_CONFIG
from resolution_hub.models.case import (
    CaseComment,
    CaseData,
    CaseDetailResponse,
    CaseListItem,
    CasesListResponse,
    CaseTimelineEvent,
    CaseUpdateRequest,
    CreateCaseRequest,
    CreateCaseResponse,
    HubStats,
    Pagination,
)
from resolution_hub.storage.db_connection import get_db_session
from resolution_hub.storage.db_models import (
    AdminUsers,
    CaseComments,
    Cases,
    CaseTimeline,
    SessionEvents,
    Sessions,
    utcnow,
)
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)

SORT_ORDERS = {
    "created_desc": Cases.created_at.desc(),
    "created_asc": Cases.created_at.asc(),
    "due_asc": Cases.due_date.asc().nulls_last(),
    "due_desc": Cases.due_date.desc().nulls_last(),
    "customer_asc": Cases.customer_name.asc(),
    "customer_desc": Cases.customer_name.desc(),
}


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _to_case_data(row: Cases, assignee_name: Optional[str] = None) -> CaseData:
    return CaseData(
        case_id=row.case_id,
        session_id=row.session_id,
        case_type=row.case_type,
        status=row.status,
        resolution_type=row.resolution_type,
        customer_email=row.customer_email,
        customer_name=row.customer_name,
        customer_phone=row.customer_phone,
        order_id=row.order_id,
        order_number=row.order_number,
        order_total=row.order_total,
        selected_item_ids=json.loads(row.selected_items) if row.selected_items else [],
        intent=row.intent,
        refund_amount=row.refund_amount,
        refund_percentage=row.refund_percentage,
        tracking_number=row.tracking_number,
        tracking_status=row.tracking_status,
        carrier_name=row.carrier_name,
        assigned_to=row.assigned_to,
        assigned_to_name=assignee_name,
        due_date=_iso(row.due_date),
        root_cause=row.root_cause,
        notes=row.notes,
        created_at=_iso(row.created_at),
        updated_at=_iso(row.updated_at),
        completed_at=_iso(row.completed_at),
    )


def _add_timeline(db, case_id: str, event_type: str, description: str,
                  user_id: Optional[int] = None, metadata: Optional[dict] = None):
    db.add(CaseTimeline(
        case_id=case_id,
        event_type=event_type,
        description=description,
        user_id=user_id,
        event_metadata=json.dumps(metadata, default=str) if metadata else None,
    ))


def create_case(request: CreateCaseRequest) -> CreateCaseResponse:
    """
    Insert a pending case and link it to its chat session.

    Returns:
        CreateCaseResponse carrying the generated case id
    """
    case_id = generate_case_id(request.case_type)
    now = utcnow()
    logger.info(f"🗂️ CASE_STORE: Creating {request.case_type} case {case_id} for session {request.session_id}")

    db = get_db_session()
    try:
        db.add(Cases(
            case_id=case_id,
            session_id=request.session_id,
            case_type=request.case_type,
            status="pending",
            resolution_type=request.resolution_type,
            customer_email=request.customer_email,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            order_id=request.order_id,
            order_number=request.order_number,
            order_total=request.order_total,
            selected_items=json.dumps(request.selected_item_ids),
            intent=request.intent,
            refund_amount=request.refund_amount,
            refund_percentage=request.refund_percentage,
            tracking_number=request.tracking_number,
            tracking_status=request.tracking_status,
            carrier_name=request.carrier_name,
            notes=request.notes,
            due_date=now + timedelta(hours=SLA_CONFIG["TARGET_HOURS"]),
            created_at=now,
            updated_at=now,
        ))

        session_row = db.get(Sessions, request.session_id)
        if session_row is None:
            session_row = Sessions(session_id=request.session_id, started_at=now)
            db.add(session_row)
        session_row.case_id = case_id
        session_row.case_created = True
        session_row.customer_email = session_row.customer_email or request.customer_email
        session_row.customer_name = session_row.customer_name or request.customer_name

        _add_timeline(db, case_id, "case_created",
                      f"Case created from chat ({request.resolution_type or 'unresolved'})",
                      metadata={"intent": request.intent, "refundAmount": request.refund_amount})
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"❌ CASE_STORE: Failed to create case for session {request.session_id}: {e}", exc_info=True)
        raise
    finally:
        db.close()

    return CreateCaseResponse(success=True, case_id=case_id)


def get_case(case_id: str) -> Optional[CaseDetailResponse]:
    db = get_db_session()
    try:
        row = db.get(Cases, case_id)
        if row is None:
            logger.warning(f"⚠️ CASE_STORE: Case {case_id} not found")
            return None

        assignee = db.get(AdminUsers, row.assigned_to) if row.assigned_to else None

        comment_rows = (
            db.query(CaseComments, AdminUsers.name)
            .outerjoin(AdminUsers, CaseComments.user_id == AdminUsers.id)
            .filter(CaseComments.case_id == case_id)
            .order_by(CaseComments.created_at.asc(), CaseComments.id.asc())
            .all()
        )
        timeline_rows = (
            db.query(CaseTimeline)
            .filter(CaseTimeline.case_id == case_id)
            .order_by(CaseTimeline.created_at.desc(), CaseTimeline.id.desc())
            .limit(50)
            .all()
        )

        return CaseDetailResponse(
            case=_to_case_data(row, assignee.name if assignee else None),
            comments=[
                CaseComment(
                    id=comment.id,
                    case_id=comment.case_id,
                    user_id=comment.user_id,
                    user_name=user_name or "System",
                    content=comment.content,
                    is_internal=comment.is_internal,
                    created_at=_iso(comment.created_at),
                )
                for comment, user_name in comment_rows
            ],
            timeline=[
                CaseTimelineEvent(
                    id=event.id,
                    case_id=event.case_id,
                    event_type=event.event_type,
                    description=event.description,
                    user_id=event.user_id,
                    metadata=json.loads(event.event_metadata) if event.event_metadata else None,
                    created_at=_iso(event.created_at),
                )
                for event in timeline_rows
            ],
        )
    finally:
        db.close()


def list_cases(
    case_type: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "created_desc",
    page: int = 1,
    limit: int = POLICY_CONFIG["ITEMS_PER_PAGE"],
) -> CasesListResponse:
    page = max(page, 1)
    limit = max(min(limit, POLICY_CONFIG["MAX_BULK_SELECT"]), 1)

    db = get_db_session()
    try:
        query = db.query(Cases)
        if case_type and case_type != "all":
            query = query.filter(Cases.case_type == case_type)
        if status and status != "all":
            if status == "overdue":
                query = query.filter(Cases.status == "pending", Cases.due_date < utcnow())
            else:
                query = query.filter(Cases.status == status)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Cases.customer_email.ilike(term),
                Cases.customer_name.ilike(term),
                Cases.case_id.ilike(term),
            ))

        total = query.count()
        rows = (
            query.order_by(SORT_ORDERS.get(sort_by, SORT_ORDERS["created_desc"]))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    finally:
        db.close()

    return CasesListResponse(
        cases=[
            CaseListItem(
                case_id=row.case_id,
                case_type=row.case_type,
                status=row.status,
                customer_name=row.customer_name,
                customer_email=row.customer_email,
                order_number=row.order_number,
                resolution_type=row.resolution_type,
                assigned_to=row.assigned_to,
                due_date=_iso(row.due_date),
                created_at=_iso(row.created_at),
            )
            for row in rows
        ],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=(total + limit - 1) // limit,
        ),
    )


def update_case(case_id: str, changes: CaseUpdateRequest, user: Optional[dict] = None) -> Optional[CaseData]:
    """Apply hub edits, writing one timeline event per changed field."""
    user_id = (user or {}).get("userId")
    username = (user or {}).get("username", "system")

    db = get_db_session()
    try:
        row = db.get(Cases, case_id)
        if row is None:
            return None

        now = utcnow()
        updates = changes.model_dump(exclude_unset=True)
        for field, value in updates.items():
            previous = getattr(row, field)
            if previous == value:
                continue
            setattr(row, field, value)
            if field == "status":
                row.completed_at = now if value == "completed" else None
                description = f"Status changed from {previous} to {value} by {username}"
            elif field == "assigned_to":
                description = f"Assigned to user {value} by {username}"
            else:
                description = f"{field.replace('_', ' ').capitalize()} updated by {username}"
            _add_timeline(db, case_id, f"{field}_changed", description,
                          user_id=user_id, metadata={"from": previous, "to": value})

        row.updated_at = now
        db.commit()
        logger.info(f"✏️ CASE_STORE: Case {case_id} updated ({', '.join(updates) or 'no changes'})")

        assignee = db.get(AdminUsers, row.assigned_to) if row.assigned_to else None
        return _to_case_data(row, assignee.name if assignee else None)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def add_comment(case_id: str, content: str, user: Optional[dict] = None,
                is_internal: bool = True) -> Optional[CaseComment]:
    user_id = (user or {}).get("userId")
    db = get_db_session()
    try:
        if db.get(Cases, case_id) is None:
            return None
        comment = CaseComments(case_id=case_id, user_id=user_id, content=content, is_internal=is_internal)
        db.add(comment)
        _add_timeline(db, case_id, "comment_added", "Comment added", user_id=user_id)
        db.commit()
        db.refresh(comment)

        author = db.get(AdminUsers, user_id) if user_id else None
        return CaseComment(
            id=comment.id,
            case_id=case_id,
            user_id=user_id,
            user_name=author.name if author and author.name else (user or {}).get("username", "System"),
            content=comment.content,
            is_internal=comment.is_internal,
            created_at=_iso(comment.created_at),
        )
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def record_session(session_id: str, flow_type: Optional[str] = None) -> bool:
    """Insert the session row if missing. Returns True when it was created."""
    db = get_db_session()
    try:
        if db.get(Sessions, session_id) is not None:
            return False
        db.add(Sessions(session_id=session_id, flow_type=flow_type))
        db.commit()
        return True
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def log_session_event(session_id: str, event_type: str, event_name: str,
                      data: Optional[dict[str, Any]] = None):
    """Analytics breadcrumb for a chat session. Never raises."""
    db = get_db_session()
    try:
        db.add(SessionEvents(
            session_id=session_id,
            event_type=event_type,
            event_name=event_name,
            event_data=json.dumps(data, default=str) if data else None,
        ))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.warning(f"⚠️ CASE_STORE: Could not record event {event_name} for {session_id}: {e}")
    finally:
        db.close()


def get_session_events(session_id: str) -> list[dict]:
    db = get_db_session()
    try:
        rows = (
            db.query(SessionEvents)
            .filter(SessionEvents.session_id == session_id)
            .order_by(SessionEvents.id.asc())
            .all()
        )
        return [
            {
                "eventType": row.event_type,
                "eventName": row.event_name,
                "eventData": json.loads(row.event_data) if row.event_data else None,
                "createdAt": _iso(row.created_at),
            }
            for row in rows
        ]
    finally:
        db.close()


def hub_stats() -> HubStats:
    db = get_db_session()
    try:
        status_counts = dict(db.query(Cases.status, func.count()).group_by(Cases.status).all())
        type_counts = dict(db.query(Cases.case_type, func.count()).group_by(Cases.case_type).all())

        start_of_day = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        completed_today = (
            db.query(func.count())
            .select_from(Cases)
            .filter(Cases.status == "completed", Cases.completed_at >= start_of_day)
            .scalar()
        )
        durations = [
            (completed_at - created_at).total_seconds() / 3600
            for created_at, completed_at in db.query(Cases.created_at, Cases.completed_at)
            .filter(Cases.status == "completed", Cases.completed_at.isnot(None))
            .all()
        ]
    finally:
        db.close()

    avg_hours = sum(durations) / len(durations) if durations else 0
    return HubStats(
        pending=status_counts.get("pending", 0),
        in_progress=status_counts.get("in_progress", 0),
        completed=status_counts.get("completed", 0),
        completed_today=completed_today or 0,
        avg_time=f"{avg_hours:.1f}h",
        all=sum(status_counts.values()),
        shipping=type_counts.get("shipping", 0),
        refund=type_counts.get("refund", 0),
        subscription=type_counts.get("subscription", 0),
        manual=type_counts.get("manual", 0),
    )


def get_admin_user(username: str) -> Optional[AdminUsers]:
    db = get_db_session()
    try:
        return db.query(AdminUsers).filter(AdminUsers.username == username).first()
    finally:
        db.close()


def get_admin_user_by_id(user_id: int) -> Optional[AdminUsers]:
    db = get_db_session()
    try:
        return db.get(AdminUsers, user_id)
    finally:
        db.close()


def create_admin_user(username: str, password_hash: str, name: Optional[str] = None,
                      role: str = "user") -> AdminUsers:
    db = get_db_session()
    try:
        user = AdminUsers(username=username, password_hash=password_hash, name=name, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"👤 CASE_STORE: Admin user {username} created")
        return user
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
