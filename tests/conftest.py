import os
import tempfile

import httpx
import pytest
from fastapi.testclient import TestClient

_DB_DIR = tempfile.mkdtemp(prefix="coldbot-tests-")

os.environ["DB_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'coldbot.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PREDICTION_URL"] = "https://prediction.test/api/v1/prediction/flow"
os.environ["PREDICTION_USERNAME"] = "COLDORG"
os.environ["PREDICTION_PASSWORD"] = "upstream-password"
os.environ["PREDICTION_API_KEY"] = ""
os.environ["ADMIN_EMAILS"] = "Boss@ColdBot.fr, ops@coldbot.fr"
os.environ["SENDER_EMAIL"] = ""
os.environ["RECAPTCHA_SECRET_KEY"] = ""
os.environ["RATE_LIMIT_REQUESTS"] = "10"
os.environ["RATE_LIMIT_INTERVAL"] = "60"
os.environ["CREATE_TABLES"] = "false"

import coldbot.database.entities  # noqa: E402,F401
from coldbot.api.prediction_client import PredictionClient  # noqa: E402
from coldbot.api.utils import issue_session_token  # noqa: E402
from coldbot.crypt.encrypt_decrypt import EncryptionDec  # noqa: E402
from coldbot.database.config.config import Settings  # noqa: E402
from coldbot.database.config.connection_engine import connection_engine, metadata  # noqa: E402
from coldbot.database.entities.user import User  # noqa: E402
from coldbot.database.helpers.transactionManagement import SessionLocal  # noqa: E402
from coldbot.main import create_app  # noqa: E402

PASSWORD = "Spear#123"


class FakeUpstream:
    """Programmable prediction endpoint used through `httpx.MockTransport`."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.payload = {"text": "Réponse de test"}
        self.error = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture(autouse=True)
def database():
    metadata.drop_all(connection_engine)
    metadata.create_all(connection_engine)
    yield


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def app(tmp_path, upstream):
    (tmp_path / "index.html").write_text("<html><body>ColdBot</body></html>")
    application = create_app(Settings(FRONTEND_DIST=str(tmp_path)))
    application.state.prediction_client = PredictionClient(
        url=os.environ["PREDICTION_URL"],
        username=os.environ["PREDICTION_USERNAME"],
        password=os.environ["PREDICTION_PASSWORD"],
        timeout=5.0,
        transport=httpx.MockTransport(upstream),
    )
    return application


@pytest.fixture(scope="function")
def client(app):
    return TestClient(app, follow_redirects=False)


def create_user(email: str, verified: bool = True, password: str = PASSWORD) -> dict:
    with SessionLocal() as session:
        user = User(
            email=email,
            password=EncryptionDec().hash_password(password),
            session_id=EncryptionDec().generate_session_nonce(),
            verified=verified,
        )
        session.add(user)
        session.commit()
        return {"id": user.id, "email": user.email, "session_id": user.session_id}


@pytest.fixture
def make_user():
    return create_user


@pytest.fixture
def auth_headers():
    def _auth_headers(email: str) -> dict:
        details = create_user(email)
        return {"Authorization": f"Bearer {issue_session_token(details)}"}

    return _auth_headers
