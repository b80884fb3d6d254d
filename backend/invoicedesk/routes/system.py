# backend/invoicedesk/routes/system.py
"""
System health endpoint.

Checks the database, the admin session table and the upload folder so a
deployment probe can tell which dependency is failing.
"""

import os
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import AdminSession, CatalogModel, Invoice, Submission
from invoicedesk.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 2)


def check_database_health() -> dict:
    """Run a count over the main tables."""
    start_time = time.time()
    try:
        details = {
            "submissions": db.session.query(Submission).count(),
            "invoices": db.session.query(Invoice).count(),
            "models": db.session.query(CatalogModel).count(),
        }
        return {"status": "healthy", "latency_ms": _elapsed_ms(start_time), "details": details}
    except Exception:
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Database error"}


def check_session_health() -> dict:
    start_time = time.time()
    try:
        now = utcnow()
        active = db.session.query(AdminSession).filter(AdminSession.expires_at > now).count()
        expired = db.session.query(AdminSession).filter(AdminSession.expires_at <= now).count()
        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": {"active_sessions": active, "expired_pending_cleanup": expired},
        }
    except Exception:
        current_app.logger.exception("Session health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Session table error"}


def check_upload_folder_health() -> dict:
    folder = os.path.abspath(current_app.config["UPLOAD_FOLDER"])
    if not os.path.isdir(folder):
        # Created lazily on the first upload
        return {"status": "degraded", "warning": "Upload folder does not exist yet"}
    if not os.access(folder, os.W_OK):
        return {"status": "unhealthy", "error": "Upload folder is not writable"}
    return {"status": "healthy"}


@system_bp.get("/health")
def health():
    """
    Health check.

    Returns:
    - 200: healthy or degraded
    - 503: at least one check is unhealthy
    """
    start_time = time.time()

    checks = {
        "database": check_database_health(),
        "sessions": check_session_health(),
        "uploads": check_upload_folder_health(),
    }
    statuses = {check["status"] for check in checks.values()}

    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "success": http_status == 200,
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": _elapsed_ms(start_time),
        "checks": checks,
    }, http_status
