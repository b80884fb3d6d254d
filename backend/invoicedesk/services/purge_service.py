# Overview: Service-layer operations for admin data purges; encapsulates business logic and database work.

"""
Purge Service

Deletion modes, all scoped by a SubmissionFilters set:

- full purge: every invoice, submission and employee, plus every upload
- filtered purge: matching invoices and the matching submissions left
  without invoices; employees are kept. An empty filter set only escalates
  to a full purge when the caller confirms it explicitly.
- invoices-only purge: matching invoices (all of them for an empty filter
  set); submissions and employees are kept
- single invoice delete

Rows are deleted in one transaction; files are removed only after the commit.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Employee, Invoice, Submission
from . import upload_storage
from .filter_service import SubmissionFilters


@dataclass
class PurgeResult:
    message: str
    invoices: int = 0
    submissions: int = 0
    employees: int = 0
    files: int = 0
    full_purge: bool = False
    filters: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": self.message,
            "deleted": {
                "invoices": self.invoices,
                "submissions": self.submissions,
                "employees": self.employees,
                "files": self.files,
            },
            "fullPurge": self.full_purge,
        }


def full_purge() -> PurgeResult:
    """Delete all invoices, submissions, employees and uploaded files."""
    try:
        invoices = db.session.query(Invoice).delete(synchronize_session=False)
        submissions = db.session.query(Submission).delete(synchronize_session=False)
        employees = db.session.query(Employee).delete(synchronize_session=False)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    files = upload_storage.clear_uploads()
    current_app.logger.warning(
        "Full purge: %d invoices, %d submissions, %d employees, %d files",
        invoices, submissions, employees, files,
    )
    return PurgeResult(
        message="All data deleted successfully",
        invoices=invoices,
        submissions=submissions,
        employees=employees,
        files=files,
        full_purge=True,
    )


def filtered_purge(filters: SubmissionFilters, *, confirm_full_purge: bool = False) -> PurgeResult:
    """
    Delete the invoices matching filters, then the matched submissions that
    no longer have any invoice. Employees are never touched here.

    With no filters this is a full purge, which requires confirm_full_purge.
    """
    if filters.is_empty():
        if not confirm_full_purge:
            raise ValidationError(
                "No filters supplied. Set confirmFullPurge to delete all data."
            )
        return full_purge()

    rows = (
        db.session.query(Submission.id, Invoice.id, Invoice.file_path)
        .outerjoin(Invoice, Invoice.submission_id == Submission.id)
        .filter(*filters.conditions())
        .distinct()
        .all()
    )
    if not rows:
        return PurgeResult(message="No data matches the selected filters", filters=filters.to_dict())

    submission_ids = {sid for sid, _, _ in rows}
    invoice_ids = {iid for _, iid, _ in rows if iid is not None}
    file_paths = [path for _, iid, path in rows if iid is not None and path]

    try:
        invoices = 0
        if invoice_ids:
            invoices = (
                db.session.query(Invoice)
                .filter(Invoice.id.in_(invoice_ids))
                .delete(synchronize_session=False)
            )

        still_referenced = {
            sid for (sid,) in db.session.query(Invoice.submission_id)
            .filter(Invoice.submission_id.in_(submission_ids))
            .distinct()
        }
        emptied = submission_ids - still_referenced
        submissions = 0
        if emptied:
            submissions = (
                db.session.query(Submission)
                .filter(Submission.id.in_(emptied))
                .delete(synchronize_session=False)
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    files = upload_storage.delete_files(file_paths)
    current_app.logger.info(
        "Filtered purge %s: %d invoices, %d submissions, %d files",
        filters.to_dict(), invoices, submissions, files,
    )
    return PurgeResult(
        message=(
            f"Filtered data deleted successfully ({invoices} invoices, "
            f"{submissions} submissions, {files} files)"
        ),
        invoices=invoices,
        submissions=submissions,
        files=files,
        filters=filters.to_dict(),
    )


def purge_invoices(filters: SubmissionFilters) -> PurgeResult:
    """
    Delete matching invoices and their files only. Submissions and employees
    stay, whether or not filters are present.
    """
    rows = (
        db.session.query(Invoice.id, Invoice.file_path)
        .join(Submission, Invoice.submission_id == Submission.id)
        .filter(*filters.conditions())
        .all()
    )
    if not rows:
        return PurgeResult(message="No invoices to delete", filters=filters.to_dict())

    invoice_ids = {iid for iid, _ in rows}
    file_paths = [path for _, path in rows if path]

    try:
        invoices = (
            db.session.query(Invoice)
            .filter(Invoice.id.in_(invoice_ids))
            .delete(synchronize_session=False)
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    files = upload_storage.delete_files(file_paths)
    current_app.logger.info(
        "Invoice purge %s: %d invoices, %d files", filters.to_dict(), invoices, files,
    )
    return PurgeResult(
        message=f"{invoices} invoice(s) deleted successfully",
        invoices=invoices,
        files=files,
        filters=filters.to_dict(),
    )


def delete_invoice(invoice_id: int) -> PurgeResult:
    """Delete one invoice and its file; the submission is kept."""
    invoice = db.session.get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")

    model, file_path = invoice.model, invoice.file_path
    try:
        db.session.delete(invoice)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    files = 1 if upload_storage.delete_file(file_path) else 0
    current_app.logger.info("Deleted invoice %s (%s)", invoice_id, model)
    return PurgeResult(message=f"Invoice {model} deleted successfully", invoices=1, files=files)
