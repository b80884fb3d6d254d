# Overview: Flask API routes for employee autofill lookups.

from flask import Blueprint, request, jsonify

from ..decorators import error_response
from ..errors import NotFoundError
from ..services import employee_service


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.get("/search")
def search_employees_route():
    """
    Partial email lookup for the submission form.

    Query parameters:
    - email: partial email; nothing is searched until it contains "@" and is
      at least 5 characters long

    Returns:
        {success, data: Employee[]} (at most 10, most recently updated first)
    """
    employees = employee_service.search_employees(request.args.get("email"))
    return jsonify({"success": True, "data": [e.to_dict() for e in employees]})


@employees_bp.get("/<path:email>")
def get_employee_route(email: str):
    try:
        employee = employee_service.get_employee(email)
    except NotFoundError as e:
        return error_response(e)
    return jsonify({"success": True, "data": employee.to_dict()})
