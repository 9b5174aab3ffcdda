import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.routers.users import get_user_directory

pytestmark = pytest.mark.unit

BASE = "/api/v1/users/push-token"


class FakeTokenStore:
    """Stands in for UserDirectory's push-token writes."""

    def __init__(self, known_emails=()):
        self.known_emails = set(known_emails)
        self.tokens = {}

    async def save_push_token(self, email, push_token):
        if email not in self.known_emails:
            return False
        self.tokens[email] = push_token
        return True

    async def remove_push_token(self, email):
        if email not in self.known_emails:
            return False
        self.tokens[email] = None
        return True


@pytest.fixture
def token_store():
    return FakeTokenStore(known_emails={"rahman@cuet.ac.bd"})


@pytest.fixture
def client(token_store):
    app.dependency_overrides[get_user_directory] = lambda: token_store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestPushTokenRoutes:
    def test_save_push_token(self, client, token_store):
        response = client.post(
            BASE, json={"email": "rahman@cuet.ac.bd", "pushToken": "ExponentPushToken[abc]"}
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert token_store.tokens == {"rahman@cuet.ac.bd": "ExponentPushToken[abc]"}

    def test_save_for_unknown_user(self, client, token_store):
        response = client.post(
            BASE, json={"email": "someone@gmail.com", "pushToken": "ExponentPushToken[abc]"}
        )

        assert response.status_code == 400
        assert response.json()["errorCode"] == "PUSH_TOKEN_NOT_SAVED"
        assert token_store.tokens == {}

    def test_push_token_is_required(self, client, token_store):
        response = client.post(BASE, json={"email": "rahman@cuet.ac.bd"})

        assert response.status_code == 400
        assert response.json()["errorCode"] == "VALIDATION_ERROR"

    def test_remove_push_token(self, client, token_store):
        token_store.tokens["rahman@cuet.ac.bd"] = "ExponentPushToken[abc]"

        response = client.request("DELETE", BASE, json={"email": "rahman@cuet.ac.bd"})

        assert response.status_code == 200
        assert token_store.tokens["rahman@cuet.ac.bd"] is None

    def test_remove_for_unknown_user(self, client):
        response = client.request("DELETE", BASE, json={"email": "ghost@cuet.ac.bd"})

        assert response.status_code == 400
        assert response.json()["errorCode"] == "PUSH_TOKEN_NOT_REMOVED"
