"""Unit tests for entity helpers and record value types."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from homecrew.models import (
    UNSET,
    DocumentItem,
    DocumentType,
    Household,
    Record,
    RecordType,
    Reference,
    ReferenceAction,
    Staff,
    StaffDocument,
    UserProfile,
)
from homecrew.models.records import matches, merge_fields
from homecrew.models.staff import format_employment_duration

pytestmark = pytest.mark.unit


def _staff(**overrides: object) -> Staff:
    values: dict[str, object] = {
        "household_id": "h1",
        "full_legal_name": "Maria Fernandes",
        "starting_date": datetime(2024, 1, 15, tzinfo=UTC),
        "monthly_salary": Decimal("18500"),
        "agreed_duties": "Cooking",
    }
    values.update(overrides)
    return Staff(**values)  # type: ignore[arg-type]


class TestStaff:
    def test_display_name_prefers_nickname(self) -> None:
        assert _staff().display_name == "Maria Fernandes"
        assert _staff(commonly_known_as="Mari").display_name == "Mari"
        assert _staff(commonly_known_as="").display_name == "Maria Fernandes"

    def test_defaults(self) -> None:
        staff = _staff()
        assert staff.leaves_allocated == 12
        assert staff.currency_code == "INR"
        assert staff.is_active is True
        assert staff.employment_status == "Active"

    def test_formatted_salary(self) -> None:
        assert _staff().formatted_salary == "INR 18,500.00"
        assert _staff(monthly_salary=Decimal("450.5"), currency_code="USD").formatted_salary == (
            "USD 450.50"
        )

    def test_duration_stops_at_leaving_date(self) -> None:
        staff = _staff(leaving_date=datetime(2024, 4, 15, tzinfo=UTC), is_active=False)
        assert staff.employment_duration_at(datetime(2030, 1, 1, tzinfo=UTC)) == "3 months"
        assert staff.employment_status == "Inactive"

    def test_filter_and_sort(self) -> None:
        active = _staff(full_legal_name="zoe")
        gone = _staff(full_legal_name="Anil", is_active=False)

        assert Staff.filter_active([active, gone]) == [active]
        assert Staff.filter_active([active, gone], include_inactive=True) == [active, gone]
        assert Staff.sorted_by_name([active, gone]) == [gone, active]


class TestEmploymentDuration:
    @pytest.mark.parametrize(
        ("start", "end", "expected"),
        [
            (datetime(2024, 1, 15), datetime(2024, 1, 20), "0 months"),
            (datetime(2024, 1, 15), datetime(2024, 2, 15), "1 month"),
            (datetime(2024, 1, 15), datetime(2025, 3, 1), "1 year, 1 month"),
            (datetime(2020, 6, 1), datetime(2024, 6, 1), "4 years, 0 months"),
            (datetime(2024, 3, 1), datetime(2024, 1, 1), "Unknown"),
        ],
    )
    def test_format(self, start: datetime, end: datetime, expected: str) -> None:
        assert format_employment_duration(start, end) == expected


class TestHousehold:
    def test_sorted_by_name_ignores_case(self) -> None:
        names = [h.name for h in Household.sorted_by_name(
            [Household("smith", "a"), Household("Brown", "b"), Household("adams", "c")]
        )]
        assert names == ["adams", "Brown", "smith"]


class TestDocuments:
    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("front.JPG", DocumentType.IMAGE),
            ("scan.heic", DocumentType.IMAGE),
            ("visa.gif", DocumentType.IMAGE),
            ("passport.pdf", DocumentType.PDF),
            ("notes.unknownext", DocumentType.OTHER),
        ],
    )
    def test_document_type_from_path(self, filename: str, expected: DocumentType) -> None:
        assert DocumentType.from_path(Path(filename)) == expected

    def test_staff_document_file_type(self) -> None:
        image = StaffDocument(id="d1", staff_id="s1", file_path=Path("/x/Front.PNG"))
        pdf = StaffDocument(id="d2", staff_id="s1", file_path=Path("/x/passport.pdf"))
        missing = StaffDocument(id="d3", staff_id="s1")

        assert image.is_image and not image.is_pdf
        assert pdf.is_pdf and not pdf.is_image
        assert missing.file_type == ""
        assert missing.name == "Document"

    def test_document_item_defaults_name_to_filename(self) -> None:
        first = DocumentItem(path="picked/front.jpg")  # type: ignore[arg-type]
        second = DocumentItem(path=Path("picked/front.jpg"), name="Aadhaar front")

        assert first.name == "front.jpg"
        assert first.document_type == DocumentType.IMAGE
        assert second.name == "Aadhaar front"
        assert first.id != second.id


class TestRecordValues:
    def test_unset_is_singleton(self) -> None:
        assert type(UNSET)() is UNSET
        assert not UNSET
        assert repr(UNSET) == "UNSET"

    def test_reference_equality_ignores_action(self) -> None:
        assert Reference("a", ReferenceAction.DELETE_SELF) == Reference("a")
        assert len({Reference("a"), Reference("a", ReferenceAction.DELETE_SELF)}) == 1
        assert Reference("a") != Reference("b")

    def test_record_get_treats_unset_as_missing(self) -> None:
        record = Record(RecordType.STAFF, fields={"nickname": UNSET, "name": "x"})
        assert record.get("nickname", "fallback") == "fallback"
        assert "nickname" not in record
        assert "name" in record

    def test_merge_fields(self) -> None:
        merged = merge_fields(
            {"name": "Smith", "notes": "old", "address": "a"},
            {"notes": UNSET, "address": "b", "extra": 1},
        )
        assert merged == {"name": "Smith", "address": "b", "extra": 1}

    def test_matches(self) -> None:
        record = Record(
            RecordType.STAFF, fields={"household_id": Reference("h1"), "is_active": True}
        )
        assert matches(record, {})
        assert matches(record, {"household_id": "h1", "is_active": True})
        assert matches(record, {"household_id": Reference("h1")})
        assert not matches(record, {"household_id": "h2"})
        assert not matches(record, {"leaving_date": None})


class TestUserProfile:
    def test_requires_user_id(self) -> None:
        with pytest.raises(ValidationError):
            UserProfile(user_id="")
        assert UserProfile(user_id="u1").full_name is None
