# Overview: Translates the admin filter set into a record predicate and SQL conditions.

"""
Filter Translator

A filter set is sparse: every field is optional and the fields combine with
logical AND. The same set drives two things:

1. the reference predicate over JoinedRecords (`matches` / `apply`), and
2. SQL conditions over submissions LEFT JOIN invoices (`conditions`), used by
   listing, exports and the filtered purges.

Text fields are case-insensitive substring matches; `store` matches either
store name or store code. Dates compare lexically as ISO strings, inclusive.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from sqlalchemy import func, or_

from ..extensions import UNICODE_LOWER_SQL_FUNCTION, db
from ..errors import ValidationError
from ..models import Invoice, Submission
from ..validation import validate_iso_date


# JSON / query-string key -> attribute
FILTER_KEYS = {
    "name": "name",
    "serial": "serial",
    "store": "store",
    "model": "model",
    "dateFrom": "date_from",
    "dateTo": "date_to",
}


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, (str, int, float)):
        raise ValidationError("Filter values must be strings")
    value = str(value).strip()
    return value or None


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def contains_ci(column, needle: str):
    """Case-insensitive substring condition that also folds non-ASCII letters."""
    if db.engine.dialect.name == "sqlite":
        folded = getattr(func, UNICODE_LOWER_SQL_FUNCTION)(column)
    else:
        folded = func.lower(column)
    return folded.like(_like_pattern(needle.lower()), escape="\\")


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


@dataclass(frozen=True)
class SubmissionFilters:
    name: str | None = None
    serial: str | None = None
    store: str | None = None
    model: str | None = None
    date_from: str | None = None
    date_to: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SubmissionFilters":
        """
        Build from camelCase keys (dateFrom/dateTo). snake_case date keys are
        accepted too. Blank values count as absent; unknown keys are ignored.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValidationError("filters must be an object")

        values = {}
        for key, attr in FILTER_KEYS.items():
            raw = data.get(key)
            if raw is None and attr != key:
                raw = data.get(attr)
            values[attr] = _clean(raw)

        for attr in ("date_from", "date_to"):
            if values[attr]:
                validate_iso_date(values[attr], field_name=attr)

        return cls(**values)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict:
        return {
            key: getattr(self, attr)
            for key, attr in FILTER_KEYS.items()
            if getattr(self, attr) is not None
        }

    def matches(self, record) -> bool:
        """
        Display predicate over a JoinedRecord (or anything with the same attributes).

        Requests filter in SQL through `conditions`; this is the reference
        semantics those conditions are tested against, and the way to narrow
        records that are already in memory.
        """
        if self.name and not _contains(record.name, self.name):
            return False
        if self.serial and not _contains(record.serial, self.serial):
            return False
        if self.store and not (
            _contains(record.store_name, self.store) or _contains(record.store_code, self.store)
        ):
            return False
        if self.model and not _contains(record.model, self.model):
            return False
        # A row without an invoice has no sales date and fails any date bound
        if self.date_from and not (record.sales_date and record.sales_date >= self.date_from):
            return False
        if self.date_to and not (record.sales_date and record.sales_date <= self.date_to):
            return False
        return True

    def apply(self, records):
        """Filter a JoinedRecord list; an empty filter set returns it unchanged."""
        if self.is_empty():
            return list(records)
        return [r for r in records if self.matches(r)]

    def conditions(self) -> list:
        """
        SQLAlchemy conditions over Submission / Invoice, one per supplied field.

        An empty list means "no conditions", i.e. every row.
        """
        conds = []
        if self.name:
            conds.append(contains_ci(Submission.name, self.name))
        if self.serial:
            conds.append(contains_ci(Submission.serial, self.serial))
        if self.store:
            conds.append(or_(
                contains_ci(Submission.store_name, self.store),
                contains_ci(Submission.store_code, self.store),
            ))
        if self.model:
            conds.append(contains_ci(Invoice.model, self.model))
        if self.date_from:
            conds.append(Invoice.sales_date >= self.date_from)
        if self.date_to:
            conds.append(Invoice.sales_date <= self.date_to)
        return conds
