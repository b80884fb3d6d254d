# Overview: Service-layer operations for the employee directory.

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError
from ..models import Employee
from .filter_service import contains_ci
from invoicedesk.time_utils import utcnow


SEARCH_MIN_LENGTH = 5
SEARCH_LIMIT = 10


def search_employees(email_query: str | None, limit: int = SEARCH_LIMIT) -> list[Employee]:
    """
    Autofill lookup by partial email.

    Only runs once the query looks like an email in progress: it must contain
    "@" and be at least 5 characters long. Otherwise returns [].
    """
    query = (email_query or "").strip()
    if "@" not in query or len(query) < SEARCH_MIN_LENGTH:
        return []

    return (
        db.session.query(Employee)
        .filter(contains_ci(Employee.email, query))
        .order_by(Employee.updated_at.desc(), Employee.id.desc())
        .limit(limit)
        .all()
    )


def get_employee(email: str) -> Employee:
    employee = db.session.query(Employee).filter_by(email=(email or "").strip().lower()).first()
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


DEMO_EMPLOYEE = {
    "email": "test@example.com",
    "name": "Demo Employee",
    "mobile": "01000000000",
    "serial": "EMP-123",
    "store_name": "Cairo Branch",
    "store_code": "CAI-01",
}


def seed_demo_employee() -> Employee:
    """Insert or refresh the demo employee used to try the email autofill."""
    now = utcnow()
    employee = db.session.query(Employee).filter_by(email=DEMO_EMPLOYEE["email"]).first()
    if employee is None:
        employee = Employee(created_at=now)
        db.session.add(employee)
    for key, value in DEMO_EMPLOYEE.items():
        setattr(employee, key, value)
    employee.updated_at = now
    db.session.commit()
    return employee
