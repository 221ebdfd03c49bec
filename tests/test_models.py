"""Tests for document models and the BIADocument row mapping."""

from datetime import datetime

import pytest

from bia_service.db.models import SECTION_COLUMNS, BIADocument
from bia_service.documents.models import (
    ALLOWED_TRANSITIONS,
    BIARequest,
    BIAStatus,
    FunctionType,
    can_transition,
)
from bia_service.exceptions import ValidationError


class TestBIARequest:
    """Tests for request validation."""

    def test_valid_request(self):
        request = BIARequest(
            function_name="  PaymentsCore ",
            function_type="product",
            regions=["NA", " eu ", ""],
        )

        assert request.function_name == "PaymentsCore"
        assert request.function_type is FunctionType.PRODUCT
        assert request.regions == ["na", "eu"]

    @pytest.mark.parametrize("name", ["", "   "])
    def test_function_name_required(self, name):
        with pytest.raises(ValidationError) as exc_info:
            BIARequest(function_name=name, function_type="product")

        assert exc_info.value.field == "function_name"

    def test_unknown_function_type(self):
        with pytest.raises(ValidationError) as exc_info:
            BIARequest(function_name="PaymentsCore", function_type="quantum")

        assert exc_info.value.field == "function_type"
        assert "product" in str(exc_info.value)

    def test_team_identifier(self):
        assert BIARequest("PaymentsCore", "product", dri_team="payments").team_identifier == "payments"
        assert BIARequest("PaymentsCore", "product").team_identifier == "PaymentsCore"


class TestTransitions:
    """Tests for the transition table."""

    @pytest.mark.parametrize(
        "current,target",
        [
            ("draft", "pending_approval"),
            ("pending_approval", "approved"),
            ("pending_approval", "rejected"),
            ("approved", "archived"),
            ("rejected", "draft"),
            ("rejected", "archived"),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("draft", "approved"),
            ("draft", "archived"),
            ("approved", "draft"),
            ("approved", "pending_approval"),
            ("archived", "draft"),
            ("pending_approval", "pending_approval"),
        ],
    )
    def test_refused(self, current, target):
        assert not can_transition(current, target)

    def test_unknown_status(self):
        assert not can_transition("draft", "published")

    def test_archived_is_terminal(self):
        assert ALLOWED_TRANSITIONS[BIAStatus.ARCHIVED] == frozenset()


class TestBIADocumentMapping:
    """Tests for BIADocument.from_document and to_dict."""

    def test_round_trip_keeps_sections(self):
        document = {
            "id": "doc-1",
            "function_name": "PaymentsCore",
            "function_type": "product",
            "version": "1.0",
            "status": "draft",
            "generated_at": "2025-01-15T10:30:00",
            "regional_overlays": [{"region": "na"}],
            "confidence_assessment": {"overall_confidence": 0.8},
        }
        for key in SECTION_COLUMNS:
            document[key] = {"section": key}

        row = BIADocument.from_document(document)
        restored = row.to_dict()

        assert row.created_at == datetime(2025, 1, 15, 10, 30)
        assert restored["generated_at"] == "2025-01-15T10:30:00"
        for key in SECTION_COLUMNS:
            assert restored[key] == {"section": key}
        assert restored["regional_overlays"] == [{"region": "na"}]
        assert restored["fusion_record_id"] is None

    def test_missing_sections_default_empty(self):
        row = BIADocument.from_document(
            {"id": "doc-2", "function_name": "Ledger", "function_type": "platform"}
        )

        assert row.personnel_data == {}
        assert row.status == "draft"
        assert row.version == "1.0"
