# Overview: Flask extension instances for database and migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from sqlalchemy import event

db = SQLAlchemy()
migrate = Migrate()

# SQLite's built-in lower() only folds ASCII
UNICODE_LOWER_SQL_FUNCTION = "unicode_lower"


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_conn, connection_record):
    dbapi_conn.create_function(UNICODE_LOWER_SQL_FUNCTION, 1, _unicode_lower, deterministic=True)


def init_sqlite_functions(app) -> None:
    """Attach unicode_lower() to every new SQLite connection of the app's engine."""
    with app.app_context():
        engine = db.engine
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _register_sqlite_functions)
