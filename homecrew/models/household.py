"""Household entity."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class Household:
    """A household that employs staff.

    Attributes:
        id: Store-assigned record id (None until created)
        name: Display name, never empty for records created here
        address: Postal address
        notes: Optional free-form notes
    """

    name: str
    address: str
    id: str | None = None
    notes: str | None = None

    @staticmethod
    def sorted_by_name(households: list[Household]) -> list[Household]:
        """Sort households by name, case-insensitive ascending."""
        return sorted(households, key=lambda h: h.name.casefold())
