from .intake import Employee, Submission, Invoice
from .catalog import CatalogModel
from .admin import AdminSettings, AdminSession

__all__ = [
    'Employee', 'Submission', 'Invoice',
    'CatalogModel',
    'AdminSettings', 'AdminSession',
]
