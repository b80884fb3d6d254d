# Overview: Flask API routes for submission intake, record listing, purges and stored files.

"""
Submission Routes

Public:
- POST /api/submissions               employee intake (multipart)
- GET  /api/image/<filename>          stored file as a data URL
- GET  /uploads/<filename>            stored file as-is

Admin session required:
- GET    /api/submissions             joined records, optionally filtered
- DELETE /api/submissions             full purge
- DELETE /api/submissions/filtered    filtered purge
- DELETE /api/invoices/filtered       invoices-only purge
- DELETE /api/invoices/<id>           single invoice
"""

import os

from flask import Blueprint, request, jsonify, current_app, send_from_directory

from ..decorators import error_response, require_admin_session
from ..errors import InvoiceDeskError, NotFoundError
from ..services import purge_service
from ..services import submission_service
from ..services import upload_storage
from ..services.filter_service import SubmissionFilters
from ..services.submission_service import FILE_FIELD_PREFIX, POSITIONAL_FILE_FIELD


submissions_bp = Blueprint("submissions", __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _internal_error(message: str):
    current_app.logger.exception(message)
    return jsonify({"success": False, "message": message}), 500


@submissions_bp.post("/api/submissions")
def create_submission_route():
    """
    Store an employee submission.

    Multipart form fields:
    - basicData: JSON {email, name, mobile, serial, storeName, storeCode}
    - invoicesData: JSON [{id, model, salesDate}, ...]
    - invoiceFile_<id>: the file for the draft with that id
    - invoiceFiles: files paired by position with drafts lacking their own field

    Returns:
        201 {success, message, submissionId}
    """
    try:
        basic_data = submission_service.parse_json_field(request.form.get("basicData"), label="basicData")
        invoices_data = submission_service.parse_json_field(request.form.get("invoicesData"), label="invoicesData")

        files_by_field = {
            field: file
            for field, file in request.files.items()
            if field.startswith(FILE_FIELD_PREFIX)
        }
        submission = submission_service.create_submission(
            basic_data,
            invoices_data,
            files_by_field=files_by_field,
            positional_files=request.files.getlist(POSITIONAL_FILE_FIELD),
        )
    except InvoiceDeskError as e:
        return error_response(e)

    return jsonify({
        "success": True,
        "message": "Submission saved successfully",
        "submissionId": submission.id,
    }), 201


@submissions_bp.get("/api/submissions")
@require_admin_session
def list_submissions_route():
    """
    Joined submission x invoice records, newest first.

    Query parameters (all optional, combined with AND):
    - name, serial, store, model: case-insensitive substring
    - dateFrom, dateTo: inclusive ISO dates on the sales date
    - includeFiles: "false" to skip inlining files as data URLs
    """
    try:
        filters = SubmissionFilters.from_mapping(request.args)
        include_files = request.args.get("includeFiles", "true").lower() != "false"
        records = submission_service.list_joined_records(filters, include_files=include_files)
    except InvoiceDeskError as e:
        return error_response(e)

    return jsonify({
        "success": True,
        "data": [r.to_dict() for r in records],
        "count": len(records),
    })


@submissions_bp.delete("/api/submissions")
@require_admin_session
def full_purge_route():
    """Delete every invoice, submission, employee and uploaded file."""
    try:
        result = purge_service.full_purge()
    except InvoiceDeskError as e:
        return error_response(e)
    except Exception:
        return _internal_error("Failed to delete data")
    return jsonify(result.to_dict())


@submissions_bp.delete("/api/submissions/filtered")
@require_admin_session
def filtered_purge_route():
    """
    Request body:
    {
        "sessionToken": "...",
        "filters": {"name": "...", "store": "...", "dateFrom": "2025-01-01", ...},
        "confirmFullPurge": false   // required true when filters are empty
    }
    """
    data = _json_body()
    try:
        filters = SubmissionFilters.from_mapping(data.get("filters"))
        result = purge_service.filtered_purge(
            filters,
            confirm_full_purge=data.get("confirmFullPurge") is True,
        )
    except InvoiceDeskError as e:
        return error_response(e)
    except Exception:
        return _internal_error("Failed to delete filtered data")
    return jsonify(result.to_dict())


@submissions_bp.delete("/api/invoices/filtered")
@require_admin_session
def purge_invoices_route():
    """Delete matching invoices and their files; empty filters mean all invoices."""
    data = _json_body()
    try:
        filters = SubmissionFilters.from_mapping(data.get("filters"))
        result = purge_service.purge_invoices(filters)
    except InvoiceDeskError as e:
        return error_response(e)
    except Exception:
        return _internal_error("Failed to delete invoices")
    return jsonify(result.to_dict())


@submissions_bp.delete("/api/invoices/<int:invoice_id>")
@require_admin_session
def delete_invoice_route(invoice_id: int):
    try:
        result = purge_service.delete_invoice(invoice_id)
    except InvoiceDeskError as e:
        return error_response(e)
    except Exception:
        return _internal_error("Failed to delete invoice")
    return jsonify(result.to_dict())


@submissions_bp.get("/api/image/<path:filename>")
def image_data_url_route(filename: str):
    """Return a stored upload as {success, data: "data:<mime>;base64,..."}."""
    name = os.path.basename(filename)
    data_url = upload_storage.read_data_url(f"{upload_storage.UPLOAD_URL_PREFIX}{name}", name)
    if not data_url:
        return error_response(NotFoundError("File not found"))
    return jsonify({"success": True, "data": data_url})


@submissions_bp.get("/uploads/<path:filename>")
def serve_upload_route(filename: str):
    return send_from_directory(upload_storage.upload_dir(), filename)
