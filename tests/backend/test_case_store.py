import pytest
from datetime import timedelta
from decimal import Decimal

from resolution_hub.models.case import CaseUpdateRequest, CreateCaseRequest
from resolution_hub.storage import case_store
from resolution_hub.storage.db_connection import get_db_session
from resolution_hub.storage.db_models import Cases, Sessions, utcnow


def _request(**overrides):
    data = {
        "session_id": "sess_1",
        "case_type": "refund",
        "customer_email": "jane@example.com",
        "customer_name": "Jane",
        "order_number": "1001",
        "selected_item_ids": ["li-1"],
        "intent": "refund",
        "resolution_type": "partial_refund",
        "refund_amount": Decimal("10.00"),
        "refund_percentage": 20,
    }
    data.update(overrides)
    return CreateCaseRequest(**data)


class TestCreateCase:

    def test_creates_pending_case_with_sla_due_date(self):
        response = case_store.create_case(_request())

        assert response.success
        assert response.case_id.startswith("REF-")

        detail = case_store.get_case(response.case_id)
        assert detail.case.status == "pending"
        assert detail.case.refund_amount == Decimal("10.00")
        assert detail.case.selected_item_ids == ["li-1"]
        assert detail.case.due_date is not None
        assert [e.event_type for e in detail.timeline] == ["case_created"]

    def test_links_session_row(self):
        case_store.record_session("sess_1", "order")
        response = case_store.create_case(_request())

        db = get_db_session()
        try:
            row = db.get(Sessions, "sess_1")
            assert row.case_id == response.case_id
            assert row.case_created is True
            assert row.flow_type == "order"
        finally:
            db.close()

    def test_unknown_case(self):
        assert case_store.get_case("REF-NOPE-000") is None


class TestListCases:

    @pytest.fixture
    def cases(self):
        return [
            case_store.create_case(_request(session_id="s1", customer_name="Alice")).case_id,
            case_store.create_case(_request(session_id="s2", case_type="shipping", customer_name="Bob",
                                            customer_email="bob@example.com")).case_id,
            case_store.create_case(_request(session_id="s3", case_type="subscription",
                                            customer_name="Carol")).case_id,
        ]

    def test_filter_by_type(self, cases):
        result = case_store.list_cases(case_type="shipping")
        assert [c.case_id for c in result.cases] == [cases[1]]
        assert result.pagination.total == 1

    def test_search(self, cases):
        result = case_store.list_cases(search="bob@")
        assert [c.customer_name for c in result.cases] == ["Bob"]

    def test_sort_and_paginate(self, cases):
        result = case_store.list_cases(sort_by="customer_desc", page=1, limit=2)
        assert [c.customer_name for c in result.cases] == ["Carol", "Bob"]
        assert result.pagination.total == 3
        assert result.pagination.total_pages == 2

    def test_overdue_filter(self, cases):
        db = get_db_session()
        try:
            db.get(Cases, cases[0]).due_date = utcnow() - timedelta(hours=1)
            db.commit()
        finally:
            db.close()

        result = case_store.list_cases(status="overdue")
        assert [c.case_id for c in result.cases] == [cases[0]]


class TestUpdateCase:

    def test_status_change_writes_timeline(self, hub_user):
        case_id = case_store.create_case(_request()).case_id
        user = {"userId": hub_user.id, "username": "admin"}

        updated = case_store.update_case(case_id, CaseUpdateRequest(status="completed", notes="done"), user)

        assert updated.status == "completed"
        assert updated.completed_at is not None
        events = {e.event_type for e in case_store.get_case(case_id).timeline}
        assert {"status_changed", "notes_changed", "case_created"} <= events

    def test_update_unknown_case(self):
        assert case_store.update_case("REF-NOPE-000", CaseUpdateRequest(status="completed")) is None

    def test_comments_carry_author_name(self, hub_user):
        case_id = case_store.create_case(_request()).case_id
        case_store.add_comment(case_id, "Refund issued", {"userId": hub_user.id, "username": "admin"})

        comments = case_store.get_case(case_id).comments
        assert [(c.content, c.user_name) for c in comments] == [("Refund issued", "Hub Admin")]

    def test_comment_on_unknown_case(self):
        assert case_store.add_comment("REF-NOPE-000", "hi") is None


class TestSessionsAndStats:

    def test_record_session_once(self):
        assert case_store.record_session("sess_x") is True
        assert case_store.record_session("sess_x") is False

    def test_session_events(self):
        case_store.log_session_event("sess_x", "step", "intent_selection", {"intent": "refund"})
        events = case_store.get_session_events("sess_x")
        assert events[0]["eventName"] == "intent_selection"
        assert events[0]["eventData"] == {"intent": "refund"}

    def test_hub_stats(self):
        first = case_store.create_case(_request(session_id="s1")).case_id
        case_store.create_case(_request(session_id="s2", case_type="shipping"))
        case_store.update_case(first, CaseUpdateRequest(status="completed"))

        stats = case_store.hub_stats()
        assert stats.pending == 1
        assert stats.completed == 1
        assert stats.completed_today == 1
        assert stats.all == 2
        assert stats.refund == 1
        assert stats.shipping == 1
