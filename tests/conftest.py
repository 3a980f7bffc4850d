import pytest

from app import create_app
from extensions import db
from tests.utils.workbooks import register


@pytest.fixture()
def app(tmp_path):
    """App bound to a throwaway SQLite file and upload folder."""
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{(tmp_path / 'test.db').as_posix()}",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "LOG_DIR": str(tmp_path / "logs"),
        "JWT_SECRET": "test-secret",
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def auth_headers(client):
    return register(client)


@pytest.fixture()
def other_headers(client):
    return register(client, username="bob", email="bob@example.com")
