# Overview: Service-layer operations for admin sessions; encapsulates business logic and database work.

"""
Admin Session Token Service

Tokens are cryptographically secure, hashed in database, and time-limited.

Lifecycle of a token:
    Issued -> Valid (while now < expires_at) -> Expired (reaped by the sweeper)
                                             -> LoggedOut (row deleted)

Validation never extends the lifetime (no sliding expiration).
"""

import secrets
import hashlib
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import AdminSession
from ..errors import SessionInvalid
from invoicedesk.time_utils import utcnow


DEFAULT_SESSION_TTL = timedelta(hours=24)


def session_ttl() -> timedelta:
    hours = current_app.config.get("SESSION_TTL_HOURS")
    return timedelta(hours=hours) if hours else DEFAULT_SESSION_TTL


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Hash token for database storage using SHA-256."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session() -> tuple[AdminSession, str]:
    """
    Create a new admin session.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = AdminSession(
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=now + session_ttl(),
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str | None) -> AdminSession:
    """
    Return the session for token.

    Raises SessionInvalid if the token is missing, unknown, or
    expires_at <= now.
    """
    if not token:
        raise SessionInvalid("No session")

    session = db.session.query(AdminSession).filter_by(
        token_hash=hash_token(token)
    ).first()

    if not session:
        raise SessionInvalid()

    if session.expires_at <= utcnow():
        raise SessionInvalid()

    return session


def is_session_valid(token: str | None) -> bool:
    try:
        validate_session(token)
    except SessionInvalid:
        return False
    return True


def revoke_session(token: str | None) -> bool:
    """
    Delete the session row for token (logout).

    Returns True if a row was deleted. A missing token or row is not an error.
    """
    if not token:
        return False

    deleted = db.session.query(AdminSession).filter_by(
        token_hash=hash_token(token)
    ).delete()
    db.session.commit()
    return deleted > 0


def cleanup_expired_sessions() -> int:
    """
    Delete all sessions with expires_at <= now.

    Returns count of sessions deleted.
    """
    deleted = db.session.query(AdminSession).filter(
        AdminSession.expires_at <= utcnow()
    ).delete()
    db.session.commit()
    return deleted
