"""Staff entity and listing helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

DEFAULT_LEAVES_ALLOCATED = 12
DEFAULT_CURRENCY_CODE = "INR"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_employment_duration(start: datetime, end: datetime) -> str:
    """Render whole years and months between two instants.

    Returns "Unknown" when ``end`` precedes ``start``.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    if months < 0:
        return "Unknown"
    years, months = divmod(months, 12)
    if years > 0:
        return f"{_plural(years, 'year')}, {_plural(months, 'month')}"
    return _plural(months, "month")


@dataclass(slots=True)
class Staff:
    """A staff member employed by one household.

    ``household_id`` is set at creation and never changed afterwards.
    ``document_ids`` mirrors the ``id_cards`` field of the stored record; the
    authoritative list of documents is the reverse query on StaffDocument.
    """

    household_id: str
    full_legal_name: str
    starting_date: datetime
    monthly_salary: Decimal
    agreed_duties: str
    id: str | None = None
    commonly_known_as: str | None = None
    leaving_date: datetime | None = None
    leaves_allocated: int = DEFAULT_LEAVES_ALLOCATED
    currency_code: str = DEFAULT_CURRENCY_CODE
    is_active: bool = True
    document_ids: list[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.commonly_known_as if self.commonly_known_as else self.full_legal_name

    @property
    def employment_status(self) -> str:
        return "Active" if self.is_active else "Inactive"

    @property
    def employment_duration(self) -> str:
        return self.employment_duration_at(datetime.now(UTC))

    def employment_duration_at(self, now: datetime) -> str:
        end = self.leaving_date or now
        return format_employment_duration(self.starting_date, end)

    @property
    def formatted_salary(self) -> str:
        return f"{self.currency_code} {self.monthly_salary:,.2f}"

    @staticmethod
    def sorted_by_name(staff_list: list[Staff]) -> list[Staff]:
        """Sort staff by full legal name, case-insensitive ascending."""
        return sorted(staff_list, key=lambda s: s.full_legal_name.casefold())

    @staticmethod
    def filter_active(staff_list: list[Staff], include_inactive: bool = False) -> list[Staff]:
        if include_inactive:
            return list(staff_list)
        return [s for s in staff_list if s.is_active]
