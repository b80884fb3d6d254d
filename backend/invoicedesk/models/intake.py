from __future__ import annotations

from ..extensions import db
from invoicedesk.time_utils import to_utc_z, utcnow


class Employee(db.Model):
    """
    Employee directory entry, keyed by email.

    Upserted on every submission: the latest submission's values overwrite
    the stored ones. Used to autofill repeat submissions.
    """
    __tablename__ = "employees"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_employees_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    mobile = db.Column(db.String(32), nullable=False)
    serial = db.Column(db.String(64), nullable=False)
    store_name = db.Column(db.String(255), nullable=False)
    store_code = db.Column(db.String(64), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "name": self.name,
            "mobile": self.mobile,
            "serial": self.serial,
            "storeName": self.store_name,
            "storeCode": self.store_code,
        }


class Submission(db.Model):
    """
    One form-intake event: a snapshot of the employee's basic data at submit
    time plus one or more invoices.

    employee_id is a back-reference, not ownership; the employee row keeps
    changing with later submissions while this snapshot does not.
    """
    __tablename__ = "submissions"
    __table_args__ = (
        db.Index("ix_submissions_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id", ondelete="SET NULL"), nullable=True, index=True)

    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    mobile = db.Column(db.String(32), nullable=False)
    serial = db.Column(db.String(64), nullable=False)
    store_name = db.Column(db.String(255), nullable=False)
    store_code = db.Column(db.String(64), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    employee = db.relationship("Employee", backref=db.backref("submissions", lazy=True))
    invoices = db.relationship(
        "Invoice",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="Invoice.id",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "email": self.email,
            "name": self.name,
            "mobile": self.mobile,
            "serial": self.serial,
            "storeName": self.store_name,
            "storeCode": self.store_code,
            "createdAt": to_utc_z(self.created_at),
            "invoices": [invoice.to_dict() for invoice in self.invoices],
        }


class Invoice(db.Model):
    """
    One sales record inside a submission.

    model is the product model name frozen at submission time. It is matched
    loosely against the catalog and is never rewritten by catalog renames.
    sales_date is an ISO YYYY-MM-DD string so range filters compare lexically.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_model", "model"),
        db.Index("ix_invoices_sales_date", "sales_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.Integer, db.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)

    model = db.Column(db.String(255), nullable=False)
    sales_date = db.Column(db.String(10), nullable=False)
    file_name = db.Column(db.String(255), nullable=False, default="")
    # Relative path under the uploads directory, e.g. /uploads/<stored name>
    file_path = db.Column(db.String(512), nullable=False, default="")

    submission = db.relationship("Submission", back_populates="invoices")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "submissionId": self.submission_id,
            "model": self.model,
            "salesDate": self.sales_date,
            "fileName": self.file_name,
            "filePath": self.file_path,
        }
