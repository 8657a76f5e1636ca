"""
Member records as seen by the poster pipeline.

Raw rows (database, JSON imports, form posts) are validated once here with
``Member.from_record``; everything downstream assumes a valid ``Member``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

HEALTH_ADVISOR = "Health Insurance Advisor"
WEALTH_MANAGER = "Wealth Manager"
PARTNER = "Partner"

DESIGNATIONS = (HEALTH_ADVISOR, WEALTH_MANAGER, PARTNER)


class InvalidMemberError(ValueError):
    pass


def _clean(value) -> str:
    return re.sub(r"\s+", " ", str(value or "")).strip()


@dataclass(frozen=True)
class Member:
    id: str
    name: str
    email: str
    phone: str = ""
    designation: str = ""
    photo: str | None = None

    @classmethod
    def from_record(cls, record: dict) -> Member:
        """Build a member from a store row or API payload.

        Accepts ``photo``, ``photo_url`` or ``photoUrl`` for the photo field.
        """
        if not isinstance(record, dict):
            raise InvalidMemberError("member record must be a mapping")

        name = _clean(record.get("name"))
        email = _clean(record.get("email")).replace(" ", "")
        if not name:
            raise InvalidMemberError("member name is required")
        if not email or "@" not in email:
            raise InvalidMemberError(f"member {name!r} has no valid email")

        photo = record.get("photo") or record.get("photo_url") or record.get("photoUrl")
        photo = str(photo).strip() if photo else None

        return cls(
            id=_clean(record.get("id")) or email.lower(),
            name=name,
            email=email,
            phone=_clean(record.get("phone")),
            designation=_clean(record.get("designation")),
            photo=photo or None,
        )


def split_designations(value: str | None) -> list[str]:
    """Split a comma-joined designation field into trimmed entries."""
    return [part.strip() for part in str(value or "").split(",") if part.strip()]


def canonical_designation(value: str) -> str:
    low = _clean(value).lower()
    if "health" in low:
        return HEALTH_ADVISOR
    if "wealth" in low:
        return WEALTH_MANAGER
    if "partner" in low:
        return PARTNER
    return _clean(value)


def expand_designation_filter(value: str | None) -> list[str]:
    """Turn an admin-selected audience into the canonical designations to target."""
    raw = _clean(value)
    if not raw:
        return []
    if raw.lower() == "both":
        return [HEALTH_ADVISOR, WEALTH_MANAGER]
    return [canonical_designation(raw)]


def registration_designations(value: str | None) -> list[str]:
    """Designations to create profiles for; ``both`` registers two profiles."""
    raw = _clean(value)
    if raw.lower() == "both":
        return [HEALTH_ADVISOR, WEALTH_MANAGER]
    return [raw] if raw else []
