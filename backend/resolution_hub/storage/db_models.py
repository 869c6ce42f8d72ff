from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    # Stored naive, always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Cases(Base):
    __tablename__ = "cases"

    case_id = Column(String, primary_key=True)
    session_id = Column(String, nullable=True, index=True)
    case_type = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="pending", index=True)
    resolution_type = Column(String, nullable=True)
    customer_email = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    order_id = Column(String, nullable=True)
    order_number = Column(String, nullable=True)
    order_total = Column(Numeric(12, 2), nullable=True)
    selected_items = Column(Text, nullable=True)  # JSON list of line item ids
    intent = Column(String, nullable=True)
    refund_amount = Column(Numeric(12, 2), nullable=True)
    refund_percentage = Column(Integer, nullable=True)
    tracking_number = Column(String, nullable=True)
    tracking_status = Column(String, nullable=True)
    carrier_name = Column(String, nullable=True)
    assigned_to = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
    due_date = Column(DateTime, nullable=True)
    root_cause = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Case(case_id={self.case_id}, type={self.case_type}, status={self.status})>"


class Sessions(Base):
    __tablename__ = "sessions"

    session_id = Column(String, primary_key=True)
    flow_type = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_name = Column(String, nullable=True)
    started_at = Column(DateTime, default=utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    case_created = Column(Boolean, default=False, nullable=False)
    case_id = Column(String, nullable=True)

    def __repr__(self):
        return f"<Session(session_id={self.session_id}, case_id={self.case_id})>"


class SessionEvents(Base):
    __tablename__ = "session_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String, nullable=False, index=True)
    event_type = Column(String, nullable=False)
    event_name = Column(String, nullable=False)
    event_data = Column(Text, nullable=True)  # JSON
    created_at = Column(DateTime, default=utcnow, nullable=False)


class CaseComments(Base):
    __tablename__ = "case_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(String, ForeignKey("cases.case_id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
    content = Column(Text, nullable=False)
    is_internal = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class CaseTimeline(Base):
    __tablename__ = "case_timeline"

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(String, ForeignKey("cases.case_id"), nullable=False, index=True)
    event_type = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
    # "metadata" is reserved on declarative classes
    event_metadata = Column("metadata", Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class AdminUsers(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="user")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<AdminUser(username={self.username}, role={self.role})>"
