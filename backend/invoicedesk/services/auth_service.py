# Overview: Service-layer operations for admin credentials; encapsulates business logic and database work.

"""
Admin Credential Service

The admin account is a singleton row (AdminSettings, id=1). Passwords are
stored only as bcrypt hashes and compared with bcrypt.checkpw, which is
timing-safe. The stored hash is never returned or logged.
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import AdminSettings
from ..errors import InvalidCredentials, ValidationError, WrongCurrentPassword
from invoicedesk.time_utils import utcnow


MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash password using bcrypt (cost factor from BCRYPT_ROUNDS, default 12)."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def get_admin_settings() -> AdminSettings | None:
    return db.session.get(AdminSettings, AdminSettings.SINGLETON_ID)


def ensure_admin_settings(username: str | None = None, password: str | None = None) -> AdminSettings:
    """
    Create the singleton admin row if it does not exist yet.

    Defaults come from DEFAULT_ADMIN_USERNAME / DEFAULT_ADMIN_PASSWORD.
    An existing row is left untouched.
    """
    settings = get_admin_settings()
    if settings:
        return settings

    settings = AdminSettings(
        id=AdminSettings.SINGLETON_ID,
        username=username or current_app.config["DEFAULT_ADMIN_USERNAME"],
        password_hash=hash_password(password or current_app.config["DEFAULT_ADMIN_PASSWORD"]),
        updated_at=utcnow(),
    )
    db.session.add(settings)
    db.session.commit()
    current_app.logger.info("Seeded default admin account '%s'", settings.username)
    return settings


def authenticate(username: str, password: str) -> AdminSettings:
    """
    Check admin credentials.

    Raises InvalidCredentials unless both username and password match.
    """
    if not username or not password:
        raise InvalidCredentials()

    settings = get_admin_settings()
    if not settings or settings.username != username:
        raise InvalidCredentials()

    if not verify_password(password, settings.password_hash):
        raise InvalidCredentials()

    return settings


def validate_new_password(password: str | None) -> None:
    if not password or not password.strip():
        raise ValidationError("New password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long")


def change_password(current_password: str, new_password: str) -> AdminSettings:
    """
    Overwrite the admin password after verifying the current one.

    Session validity is the caller's concern. Other active sessions are not
    revoked.
    """
    settings = get_admin_settings()
    if not settings or not current_password or not verify_password(current_password, settings.password_hash):
        raise WrongCurrentPassword()

    validate_new_password(new_password)

    settings.password_hash = hash_password(new_password)
    settings.updated_at = utcnow()
    db.session.commit()
    return settings


def reset_password(new_password: str) -> AdminSettings:
    """Set the admin password without the current one (CLI recovery only)."""
    validate_new_password(new_password)
    settings = ensure_admin_settings()
    settings.password_hash = hash_password(new_password)
    settings.updated_at = utcnow()
    db.session.commit()
    return settings
