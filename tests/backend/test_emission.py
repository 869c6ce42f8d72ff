import pytest
import re
from decimal import Decimal
from unittest.mock import MagicMock

from resolution_hub.cases.emission import build_case_request, emit_case, generate_case_id
from resolution_hub.core.errors import EmissionFailure, InvalidStateError, ValidationError
from resolution_hub.ladder import engine
from resolution_hub.models.case import CreateCaseResponse
from resolution_hub.models.order import CustomerIdentity
from resolution_hub.storage import case_store


def _stub_create_case(case_id="REF-ABC123-XYZ"):
    return MagicMock(return_value=CreateCaseResponse(success=True, case_id=case_id))


class TestCaseIds:

    @pytest.mark.parametrize("case_type,prefix", [
        ("refund", "REF"),
        ("shipping", "SHP"),
        ("subscription", "SUB"),
        ("return", "RET"),
        ("manual", "MAN"),
        ("something", "CAS"),
    ])
    def test_prefix_by_case_type(self, case_type, prefix):
        assert generate_case_id(case_type).startswith(f"{prefix}-")

    def test_format(self):
        case_id = generate_case_id("refund", now_ms=1700000000000)
        assert re.fullmatch(r"REF-[0-9A-Z]+-[0-9A-Z]{3}", case_id)
        assert case_id.split("-")[1] == "LOYW3V28"


class TestEmission:

    def test_emits_accepted_outcome(self, ready_session):
        engine.select_intent(ready_session, "refund")
        engine.accept(ready_session)
        create_case = _stub_create_case()

        case_id = emit_case(ready_session, create_case)

        assert case_id == "REF-ABC123-XYZ"
        assert ready_session.case_id == case_id
        request = create_case.call_args.args[0]
        assert request.session_id == ready_session.session_id
        assert request.case_type == "refund"
        assert request.customer_email == "jane@example.com"
        assert request.customer_name == "Jane"
        assert request.selected_item_ids == ["li-1", "li-2"]
        assert request.resolution_type == "partial_refund"
        assert request.refund_amount == Decimal("10.00")
        assert request.refund_percentage == 20
        assert case_id in ready_session.messages[-1]["content"]

    def test_second_emission_returns_existing_case(self, ready_session):
        engine.select_intent(ready_session, "refund")
        engine.accept(ready_session)
        create_case = _stub_create_case()

        first = emit_case(ready_session, create_case)
        second = emit_case(ready_session, create_case)

        assert first == second == "REF-ABC123-XYZ"
        create_case.assert_called_once()

    def test_escalation_has_no_refund_amount(self, ready_session):
        engine.select_intent(ready_session, "damaged")
        engine.decline(ready_session)
        engine.decline(ready_session)
        create_case = _stub_create_case("SHP-ABC123-XYZ")

        emit_case(ready_session, create_case)

        request = create_case.call_args.args[0]
        assert request.resolution_type == "escalated"
        assert request.case_type == "shipping"
        assert request.refund_amount is None

    def test_failure_keeps_outcome_for_retry(self, ready_session):
        engine.select_intent(ready_session, "refund")
        engine.accept(ready_session)
        outcome = ready_session.outcome
        create_case = MagicMock(side_effect=ConnectionError("db down"))

        with pytest.raises(EmissionFailure) as exc_info:
            emit_case(ready_session, create_case)

        assert exc_info.value.session_id == ready_session.session_id
        assert ready_session.case_id is None
        assert ready_session.negotiation_state == "ACCEPTED"
        assert ready_session.outcome == outcome

        create_case.side_effect = None
        create_case.return_value = CreateCaseResponse(success=True, case_id="REF-RETRY-001")
        assert emit_case(ready_session, create_case) == "REF-RETRY-001"
        assert create_case.call_args_list[0].args[0] == create_case.call_args_list[1].args[0]

    def test_unsuccessful_response_is_failure(self, ready_session):
        engine.select_intent(ready_session, "refund")
        engine.accept(ready_session)
        create_case = MagicMock(return_value=CreateCaseResponse(success=False, error="nope"))

        with pytest.raises(EmissionFailure, match="nope"):
            emit_case(ready_session, create_case)
        assert ready_session.case_id is None

    def test_requires_finished_negotiation(self, ready_session):
        with pytest.raises(InvalidStateError):
            emit_case(ready_session, _stub_create_case())

    def test_requires_customer_email(self, ready_session):
        engine.select_intent(ready_session, "refund")
        engine.accept(ready_session)

        with pytest.raises(ValidationError):
            build_case_request(ready_session, ready_session.outcome, CustomerIdentity(phone="5551234567"))


class TestEmissionRoundTrip:

    def test_outcome_survives_case_store(self, ready_session):
        """Outcome written through the case store reads back unchanged"""
        engine.select_intent(ready_session, "wrong_item")
        engine.decline(ready_session)
        result = engine.accept(ready_session)

        case_id = emit_case(ready_session, case_store.create_case)
        stored = case_store.get_case(case_id).case

        assert case_id.startswith("SHP-")
        assert stored.resolution_type == result.outcome.resolution_type
        assert stored.refund_amount == result.outcome.refund_amount
        assert stored.refund_percentage == result.outcome.refund_percentage
        assert stored.selected_item_ids == ["li-1", "li-2"]
