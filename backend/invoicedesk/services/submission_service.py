# Overview: Service-layer operations for submission intake and the joined record view.

"""
Submission Intake

A submission is one basic-data snapshot plus N invoice drafts, each with a
file. Intake runs as one transaction:

    upsert employee (by email, last write wins)
      -> insert submission (always new, never upserted)
        -> insert one invoice per draft

Files are written to disk first; if any step fails the transaction is rolled
back and the files written so far are removed again.

Each draft carries a client-generated id and its file is looked up under the
form field "invoiceFile_<id>". Drafts without such a field fall back to
positional pairing with the "invoiceFiles" list.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from flask import current_app
from werkzeug.datastructures import FileStorage

from ..extensions import db
from ..errors import InvoiceDeskError, StorageError, ValidationError
from ..models import CatalogModel, Employee, Invoice, Submission
from ..validation import require_fields, validate_iso_date
from invoicedesk.time_utils import to_utc_z, utcnow
from . import upload_storage
from .filter_service import SubmissionFilters
from .records import JoinedRecord


BASIC_FIELDS = ["email", "name", "mobile", "serial", "storeName", "storeCode"]
FILE_FIELD_PREFIX = "invoiceFile_"
POSITIONAL_FILE_FIELD = "invoiceFiles"


@dataclass
class InvoiceDraft:
    draft_id: str | None
    model: str
    sales_date: str
    file: FileStorage | None = None


def parse_json_field(raw: str | None, *, label: str) -> Any:
    if raw is None or raw == "":
        raise ValidationError(f"{label} is required")
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be valid JSON")


def validate_basic_data(data: Any) -> dict[str, str]:
    basic = require_fields(data, BASIC_FIELDS, label="basicData")
    email = basic["email"]
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("basicData: email is not valid")
    return basic


def build_drafts(invoices_data: Any, files_by_field: dict[str, FileStorage],
                 positional_files: list[FileStorage]) -> list[InvoiceDraft]:
    """Validate invoice metadata and attach each draft's file."""
    if not isinstance(invoices_data, list) or not invoices_data:
        raise ValidationError("invoicesData must contain at least one invoice")

    drafts = []
    for index, item in enumerate(invoices_data):
        cleaned = require_fields(item, ["model", "salesDate"], label=f"invoice {index + 1}")
        draft_id = item.get("id")
        drafts.append(InvoiceDraft(
            draft_id=str(draft_id) if draft_id not in (None, "") else None,
            model=cleaned["model"],
            sales_date=validate_iso_date(cleaned["salesDate"]),
        ))

    remaining = [f for f in positional_files if f and f.filename]
    for draft in drafts:
        if draft.draft_id is not None:
            correlated = files_by_field.get(f"{FILE_FIELD_PREFIX}{draft.draft_id}")
            if correlated is not None and correlated.filename:
                draft.file = correlated

    for draft in drafts:
        if draft.file is None and remaining:
            draft.file = remaining.pop(0)

    return drafts


def upsert_employee(basic: dict[str, str]) -> Employee:
    """
    Insert or overwrite the employee keyed by the lowercased email. Does not
    commit. The submission snapshot keeps the email as typed.
    """
    now = utcnow()
    key = basic["email"].lower()
    employee = db.session.query(Employee).filter_by(email=key).first()
    if employee is None:
        employee = Employee(email=key, created_at=now)
        db.session.add(employee)

    employee.name = basic["name"]
    employee.mobile = basic["mobile"]
    employee.serial = basic["serial"]
    employee.store_name = basic["storeName"]
    employee.store_code = basic["storeCode"]
    employee.updated_at = now
    return employee


def create_submission(basic_data: Any, invoices_data: Any,
                      files_by_field: dict[str, FileStorage] | None = None,
                      positional_files: list[FileStorage] | None = None) -> Submission:
    """
    Store one submission with its invoices atomically.

    Raises ValidationError for bad input, StorageError when the database or
    filesystem fails. Nothing is persisted on failure.
    """
    basic = validate_basic_data(basic_data)
    drafts = build_drafts(invoices_data, files_by_field or {}, positional_files or [])

    written: list[str] = []
    try:
        employee = upsert_employee(basic)
        db.session.flush()

        submission = Submission(
            employee_id=employee.id,
            email=basic["email"],
            name=basic["name"],
            mobile=basic["mobile"],
            serial=basic["serial"],
            store_name=basic["storeName"],
            store_code=basic["storeCode"],
            created_at=utcnow(),
        )
        db.session.add(submission)

        for draft in drafts:
            file_name, file_path = "", ""
            if draft.file is not None:
                file_name, file_path = upload_storage.save_upload(draft.file)
                written.append(file_path)
            submission.invoices.append(Invoice(
                model=draft.model,
                sales_date=draft.sales_date,
                file_name=file_name,
                file_path=file_path,
            ))

        db.session.commit()
    except InvoiceDeskError:
        db.session.rollback()
        upload_storage.delete_files(written)
        raise
    except Exception as e:
        db.session.rollback()
        upload_storage.delete_files(written)
        current_app.logger.exception("Failed to store submission for %s", basic["email"])
        raise StorageError("Failed to save submission") from e

    current_app.logger.info(
        "Stored submission %s for %s with %d invoice(s)",
        submission.id, submission.email, len(drafts),
    )
    return submission


def _category_lookup() -> dict[str, str]:
    return {name: category for name, category in db.session.query(CatalogModel.name, CatalogModel.category)}


def list_joined_records(filters: SubmissionFilters | None = None, *,
                        include_files: bool = True) -> list[JoinedRecord]:
    """
    Submissions LEFT JOIN invoices, newest submission first, narrowed by filters.

    With include_files the stored file is inlined as a data URL.
    """
    filters = filters or SubmissionFilters()
    query = (
        db.session.query(Submission, Invoice)
        .outerjoin(Invoice, Invoice.submission_id == Submission.id)
        .filter(*filters.conditions())
        .order_by(Submission.created_at.desc(), Submission.id.desc(), Invoice.id.asc())
    )

    categories = _category_lookup()
    records = []
    for submission, invoice in query.all():
        record = JoinedRecord(
            submission_id=submission.id,
            submission_date=to_utc_z(submission.created_at),
            email=submission.email,
            name=submission.name,
            mobile=submission.mobile,
            serial=submission.serial,
            store_name=submission.store_name,
            store_code=submission.store_code,
        )
        if invoice is not None:
            record.invoice_id = invoice.id
            record.model = invoice.model
            record.category = categories.get(invoice.model)
            record.sales_date = invoice.sales_date
            record.file_name = invoice.file_name
            record.file_path = invoice.file_path
            if include_files:
                record.file_data_url = upload_storage.read_data_url(invoice.file_path, invoice.file_name)
        records.append(record)
    return records
