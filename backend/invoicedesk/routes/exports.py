# Overview: Flask API routes for report downloads (store workbook, invoice archive).

"""
Export routes

Both endpoints take the same filter query parameters as GET /api/submissions
(name, serial, store, model, dateFrom, dateTo) and export exactly the records
that listing would show. Counters travel in response headers:

- X-Images-Added: files embedded / archived
- X-Images-Skipped: records without an embeddable file
"""

from io import BytesIO

from flask import Blueprint, request, jsonify, current_app, send_file

from ..decorators import error_response, require_download_session
from ..errors import InvoiceDeskError
from ..services import export_service
from ..services import submission_service
from ..services.filter_service import SubmissionFilters


exports_bp = Blueprint("exports", __name__, url_prefix="/api/exports")


def _send_export(result: export_service.ExportResult):
    response = send_file(
        BytesIO(result.content),
        mimetype=result.mimetype,
        as_attachment=True,
        download_name=result.filename,
    )
    response.headers["X-Images-Added"] = str(result.images_added)
    response.headers["X-Images-Skipped"] = str(result.images_skipped)
    response.headers["Access-Control-Expose-Headers"] = "Content-Disposition, X-Images-Added, X-Images-Skipped"
    return response


def _run_export(builder, failure_message: str):
    try:
        filters = SubmissionFilters.from_mapping(request.args)
        records = submission_service.list_joined_records(filters, include_files=True)
        result = builder(records)
    except InvoiceDeskError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception(failure_message)
        return jsonify({"success": False, "message": failure_message}), 500
    return _send_export(result)


@exports_bp.get("/workbook")
@require_download_session
def export_workbook_route():
    """Excel report: summary sheet plus one sheet per store with invoice images."""
    return _run_export(export_service.build_workbook_export, "Failed to create Excel file")


@exports_bp.get("/archive")
@require_download_session
def export_archive_route():
    """ZIP of invoice files by store / employee / model with a summary workbook."""
    return _run_export(export_service.build_archive_export, "Failed to create ZIP file")
