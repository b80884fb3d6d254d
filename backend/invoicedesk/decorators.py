# Overview: Request decorators and shared response helpers for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import InvoiceDeskError, SessionInvalid
from .services import session_service


def error_response(e: InvoiceDeskError):
    """JSON failure body with the status the error maps to."""
    return jsonify({"success": False, "message": str(e)}), e.status_code


def extract_session_token(*, allow_query: bool = False) -> str | None:
    """
    Token from "Authorization: Bearer <token>", then the sessionToken field
    of a JSON body. With allow_query, a sessionToken query parameter is the
    last resort.
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token

    data = request.get_json(silent=True)
    if isinstance(data, dict):
        token = data.get("sessionToken")
        if isinstance(token, str) and token.strip():
            return token.strip()

    if allow_query:
        token = request.args.get("sessionToken", "").strip()
        return token or None
    return None


def _session_guard(f, *, allow_query: bool):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = extract_session_token(allow_query=allow_query)
        try:
            admin_session = session_service.validate_session(token)
        except SessionInvalid as e:
            return error_response(e)

        g.admin_session = admin_session
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_admin_session(f):
    """
    Require a live admin session (Bearer header or JSON sessionToken).

    Sets g.admin_session and g.session_token. Returns 401
    {"success": false, "message": ...} when the token is missing, unknown
    or expired.
    """
    return _session_guard(f, allow_query=False)


def require_download_session(f):
    """
    Like require_admin_session, but also reads ?sessionToken= for plain
    browser downloads that cannot set headers.

    A token in the URL ends up in access logs and browser history, so only
    the export downloads use this.
    """
    return _session_guard(f, allow_query=True)
