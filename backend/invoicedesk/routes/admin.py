# Overview: Flask API routes for admin login, session checks and password changes.

# backend/invoicedesk/routes/admin.py
"""
Admin Authentication routes

- login issues a 24h session token (only its SHA-256 hash is stored)
- verify-session never extends the token lifetime
- logout is idempotent
- change-password requires a live session and the current password
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import error_response, extract_session_token, require_admin_session
from ..errors import InvoiceDeskError
from ..services import auth_service
from ..services import session_service
from invoicedesk.time_utils import to_utc_z


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.post("/login")
def login_route():
    """
    Authenticate the admin and create a session token.

    Request body: {"username": "...", "password": "..."}

    Returns:
        {success, sessionToken, expiresAt, message}
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        return jsonify({"success": False, "message": "username and password required"}), 400

    try:
        auth_service.ensure_admin_settings()
        auth_service.authenticate(username, password)
        session, token = session_service.create_session()
    except InvoiceDeskError as e:
        current_app.logger.warning("Failed admin login for '%s' from %s", username, request.remote_addr)
        return error_response(e)

    current_app.logger.info("Admin session %s created", session.id)
    return jsonify({
        "success": True,
        "sessionToken": token,
        "expiresAt": to_utc_z(session.expires_at),
        "message": "Logged in successfully",
    })


@admin_bp.post("/verify-session")
@require_admin_session
def verify_session_route():
    return jsonify({
        "success": True,
        "message": "Session is valid",
        "expiresAt": to_utc_z(g.admin_session.expires_at),
    })


@admin_bp.post("/logout")
def logout_route():
    """Delete the session. A missing or unknown token still succeeds."""
    token = extract_session_token()
    if session_service.revoke_session(token):
        current_app.logger.info("Admin session revoked")
    return jsonify({"success": True, "message": "Logged out successfully"})


@admin_bp.post("/change-password")
@require_admin_session
def change_password_route():
    """
    Request body:
    {
        "sessionToken": "...",      // or Authorization: Bearer
        "currentPassword": "...",
        "newPassword": "..."        // at least 6 characters
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        auth_service.change_password(data.get("currentPassword"), data.get("newPassword"))
    except InvoiceDeskError as e:
        return error_response(e)

    current_app.logger.info("Admin password changed")
    return jsonify({"success": True, "message": "Password changed successfully"})
