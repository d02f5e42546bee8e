import pytest
from fastapi.testclient import TestClient

from stureg.config import Settings
from stureg.main import create_app

DEFAULT_PASSWORD = "admin123"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        secret_key="x" * 40,
        bcrypt_rounds=10,
        timezone="UTC",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def token(client):
    resp = client.post("/api/login", json={"username": "admin", "password": DEFAULT_PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_payload():
    def _make(**overrides):
        payload = {
            "serialNumber": "1",
            "name": "Li Wei",
            "major": "Computer Science",
            "className": "CS-2401",
            "studentId": "20240001",
            "gender": "male",
            "nationality": "Han",
            "idCard": "110101200501010011",
            "birthDate": "2005-01",
            "dormitory": "B-302",
            "economicStatus": "normal",
            "householdType": "urban",
            "nativePlace": "Beijing",
            "homeAddress": "1 Chang'an Ave, Beijing",
            "phone": "13800000001",
            "fatherName": "Li Qiang",
            "fatherPhone": "13800000002",
            "motherName": "Wang Fang",
            "motherPhone": "13800000003",
            "qq": "123456",
            "politicalStatus": "league member",
            "specialty": "chess",
            "religion": "none",
        }
        payload.update(overrides)
        return payload

    return _make
