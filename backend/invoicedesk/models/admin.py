from __future__ import annotations

from ..extensions import db
from invoicedesk.time_utils import to_utc_z, utcnow


class AdminSettings(db.Model):
    """
    Singleton admin credential row (id=1).

    Only the bcrypt hash of the password is stored. Changed exclusively through
    the change-password flow, which requires the current password.
    """
    __tablename__ = "admin_settings"

    SINGLETON_ID = 1

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "updatedAt": to_utc_z(self.updated_at),
        }


class AdminSession(db.Model):
    """
    Admin session token.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - Fixed 24-hour lifetime, never extended by use
    - Deleted on logout; expired rows are reaped by the session sweeper
    """
    __tablename__ = "admin_sessions"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "createdAt": to_utc_z(self.created_at),
            "expiresAt": to_utc_z(self.expires_at),
        }
