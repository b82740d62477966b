import pytest
from fastapi.testclient import TestClient

from submitdesk.app import create_app
from submitdesk.config import Config
from submitdesk.create_db import create_db, seed
from submitdesk.db import make_engine, make_sessionmaker

ADMIN_PASSWORD = "Passw0rd!"


@pytest.fixture
def config():
    return Config(
        secret_key="test-secret",
        database_url="sqlite://",
        max_upload_bytes=64 * 1024,
        admin_username="admin",
        admin_password=ADMIN_PASSWORD,
        admin_name="Campus Admin",
        log_level="DEBUG",
    )


@pytest.fixture
def db(config):
    engine = make_engine("sqlite://")
    create_db(engine)
    session = make_sessionmaker(engine)()
    seed(session, config)
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def app(config):
    return create_app(config)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_student(client):
    def _register(roll, name="Student", semester=2, password="secret"):
        r = client.post("/student/register", json={
            "rollNumber": roll, "name": name, "semester": semester, "password": password,
        })
        assert r.status_code == 200, r.json()
        return r.json()["token"]
    return _register


@pytest.fixture
def admin_token(client):
    r = client.post("/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.json()
    return r.json()["token"]


@pytest.fixture
def faculty_token(client, admin_token):
    r = client.post("/addFaculty", headers=bearer(admin_token),
                    json={"name": "Dr. Rao", "username": "rao", "password": "facpass"})
    assert r.status_code == 200, r.json()
    r = client.post("/faculty/login", json={"username": "rao", "password": "facpass"})
    assert r.status_code == 200, r.json()
    return r.json()["token"]
