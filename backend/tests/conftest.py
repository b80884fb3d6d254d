"""
Pytest fixtures for invoice desk backend tests.

Provides an in-memory database, a temporary upload folder, the test client
and an admin session token.
"""

import io
import os

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from invoicedesk import create_app
from invoicedesk.extensions import db
from invoicedesk.services import auth_service, session_service


ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin2025"


@pytest.fixture(scope='session')
def upload_folder(tmp_path_factory):
    return str(tmp_path_factory.mktemp("uploads"))


@pytest.fixture(scope='session')
def app(upload_folder):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_FOLDER': upload_folder,
        'BCRYPT_ROUNDS': 4,
        'DEFAULT_ADMIN_USERNAME': ADMIN_USERNAME,
        'DEFAULT_ADMIN_PASSWORD': ADMIN_PASSWORD,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app, upload_folder):
    """Create fresh database and upload folder for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        for name in os.listdir(upload_folder):
            os.remove(os.path.join(upload_folder, name))

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_settings(db_session):
    """Seed the default admin account."""
    return auth_service.ensure_admin_settings()


@pytest.fixture(scope='function')
def admin_token(admin_settings):
    """Plaintext token of a fresh admin session."""
    _, token = session_service.create_session()
    return token


@pytest.fixture(scope='function')
def admin_headers(admin_token):
    return auth_headers(admin_token)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def make_jpeg(color=(200, 30, 30), size=(40, 30)) -> bytes:
    """Small real JPEG so Pillow and openpyxl accept it."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG")
    return buffer.getvalue()


def make_png(color=(30, 30, 200), size=(40, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def file_storage(content: bytes, filename: str, content_type: str = "image/jpeg") -> FileStorage:
    return FileStorage(stream=io.BytesIO(content), filename=filename, content_type=content_type)


def basic_data(**overrides) -> dict:
    data = {
        "email": "ahmed@example.com",
        "name": "Ahmed Ali",
        "mobile": "01012345678",
        "serial": "EMP-001",
        "storeName": "Cairo Branch",
        "storeCode": "CAI-01",
    }
    data.update(overrides)
    return data
