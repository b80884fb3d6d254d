# Overview: Error taxonomy shared by services and routes.

"""
Every service error carries the HTTP status it maps to. Routes catch
InvoiceDeskError and answer {"success": false, "message": str(e)}.

    ValidationError      400  missing/invalid input
    AuthError            401  bad credentials, invalid or expired session
    ConflictError        400  duplicate model name, model still in use
    NotFoundError        404  unknown model / employee / invoice / file
    StorageError         500  filesystem or database failure
"""


class InvoiceDeskError(Exception):
    status_code = 500


class ValidationError(InvoiceDeskError, ValueError):
    """400-level input problem."""
    status_code = 400


class AuthError(InvoiceDeskError):
    status_code = 401


class InvalidCredentials(AuthError):
    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class SessionInvalid(AuthError):
    def __init__(self, message: str = "Invalid or expired session"):
        super().__init__(message)


class WrongCurrentPassword(InvoiceDeskError):
    status_code = 400

    def __init__(self, message: str = "Current password is incorrect"):
        super().__init__(message)


class ConflictError(InvoiceDeskError, ValueError):
    """Business rule conflict (duplicate name, model in use)."""
    status_code = 400


class DuplicateName(ConflictError):
    pass


class ModelInUse(ConflictError):
    def __init__(self, model_name: str, invoice_count: int):
        self.model_name = model_name
        self.invoice_count = invoice_count
        super().__init__(
            f"Cannot delete model {model_name}: it is used by {invoice_count} invoice(s)"
        )


class NotFoundError(InvoiceDeskError):
    status_code = 404


class StorageError(InvoiceDeskError):
    status_code = 500
