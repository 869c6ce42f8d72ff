import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from resolution_hub.core.errors import InvalidStateError, ValidationError
from resolution_hub.ladder.state import ResolutionSession
from resolution_hub.models.case import CreateCaseRequest, CreateCaseResponse
from resolution_hub.models.order import LineItem, OrderSnapshot


class TestOrderSnapshot:

    def test_selectable_items_exclude_digital(self, sample_order):
        assert [i.id for i in sample_order.selectable_items] == ["li-1", "li-2"]

    def test_line_total(self):
        item = LineItem(id="x", title="Toy", quantity=3, unit_price=Decimal("2.50"))
        assert item.line_total == Decimal("7.50")

    def test_guarantee_window(self, sample_order, old_order):
        assert sample_order.is_within_guarantee()
        assert not old_order.is_within_guarantee()

    def test_guarantee_boundary(self, sample_order):
        placed = sample_order.created_at
        assert sample_order.is_within_guarantee(now=placed + timedelta(days=90))
        assert not sample_order.is_within_guarantee(now=placed + timedelta(days=91))

    def test_can_cancel_only_fresh_unfulfilled(self):
        order = OrderSnapshot(id="o", order_number="1", created_at=datetime.now(timezone.utc))
        assert order.can_cancel()
        assert not order.model_copy(update={"fulfillment_status": "fulfilled"}).can_cancel()

    def test_summary_is_json_friendly(self, sample_order):
        summary = sample_order.summary()
        assert summary["display_name"] == "#1001"
        assert summary["total_price"] == "55.00"
        assert summary["item_count"] == 3
        assert summary["items"][2]["is_selectable"] is False
        assert summary["is_within_guarantee"] is True

    def test_snapshot_is_frozen(self, sample_order):
        with pytest.raises(Exception):
            sample_order.order_number = "2"


class TestSessionSelection:

    def test_select_order_by_number(self, customer, sample_order):
        session = ResolutionSession(customer=customer, orders=[sample_order])
        assert session.select_order("1001") is sample_order

    def test_select_unknown_order(self, customer, sample_order):
        session = ResolutionSession(customer=customer, orders=[sample_order])
        with pytest.raises(ValidationError):
            session.select_order("nope")

    def test_rejected_order_pick_changes_nothing(self, ready_session):
        ready_session.negotiation_state = "OFFER_PRESENTED"
        ready_session.ladder_type = "refund"
        ready_session.ladder_step = 1

        with pytest.raises(ValidationError):
            ready_session.select_order("1001", ["li-3"])

        assert ready_session.negotiation_state == "OFFER_PRESENTED"
        assert ready_session.ladder_step == 1
        assert [i.id for i in ready_session.selected_items] == ["li-1", "li-2"]

    def test_select_order_with_items(self, ready_session):
        ready_session.select_order("1001", ["li-2"])
        assert [i.id for i in ready_session.selected_items] == ["li-2"]
        assert ready_session.negotiation_state == "AWAITING_INTENT"

    def test_select_items_validates_membership(self, ready_session):
        with pytest.raises(ValidationError) as exc_info:
            ready_session.set_selected_items(["li-1", "li-3", "li-404"])
        assert len(exc_info.value.errors) == 2
        assert [i.id for i in ready_session.selected_items] == ["li-1", "li-2"]

    def test_select_items_dedupes(self, ready_session):
        ready_session.set_selected_items(["li-1", "li-1"])
        assert [i.id for i in ready_session.selected_items] == ["li-1"]

    def test_items_need_order(self, customer):
        session = ResolutionSession(customer=customer)
        with pytest.raises(InvalidStateError):
            session.set_selected_items(["li-1"])


class TestCaseModels:

    def test_request_accepts_camel_case_and_legacy_items_key(self):
        request = CreateCaseRequest.model_validate({
            "sessionId": "sess_1",
            "caseType": "refund",
            "customerEmail": "jane@example.com",
            "selectedItems": ["li-1"],
            "refundAmount": "10.005",
        })
        assert request.selected_item_ids == ["li-1"]
        assert request.customer_name == "Customer"
        assert request.refund_amount == Decimal("10.005")

    def test_money_serialises_as_number(self):
        request = CreateCaseRequest(
            session_id="sess_1", case_type="refund", customer_email="a@b.co",
            refund_amount=Decimal("10.00"),
        )
        data = request.model_dump(mode="json", by_alias=True)
        assert data["refundAmount"] == 10.0
        assert data["selectedItemIds"] == []

    def test_request_requires_email(self):
        with pytest.raises(Exception):
            CreateCaseRequest(session_id="sess_1", case_type="refund", customer_email="")

    def test_response_aliases(self):
        response = CreateCaseResponse(success=True, case_id="REF-1-ABC")
        assert response.model_dump(by_alias=True)["caseId"] == "REF-1-ABC"
