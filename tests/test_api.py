import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from config.settings import AppSettings
from core.gateway import GatewayError, ImageGateway
from core.llm import ChatProvider, LLMError
from core.models.domain import AcquiredImage


class _StubGateway(ImageGateway):
    def __init__(self, error=None):
        self.error = error
        self.prompts = []

    async def _generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return AcquiredImage(url="https://img/lake.png", prompt=prompt, id="stub-1")


class _StubChat(ChatProvider):
    def __init__(self, reply="Hello from the wall", error=None):
        self.reply = reply
        self.error = error
        self.messages = []

    async def complete(self, message):
        self.messages.append(message)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture()
def gateway():
    return _StubGateway()


@pytest.fixture()
def client(gateway):
    return TestClient(create_app(gateway=gateway, settings=AppSettings()))


class TestGenerateImageRoute:
    def test_success_returns_acquired_image(self, client, gateway):
        response = client.post("/api/generate-image", json={"prompt": "a lake"})

        assert response.status_code == 200
        assert response.json() == {"url": "https://img/lake.png", "prompt": "a lake", "id": "stub-1"}
        assert gateway.prompts == ["a lake"]

    def test_invalid_json_body(self, client, gateway):
        response = client.post(
            "/api/generate-image", content="{prompt:", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON in request body"}
        assert gateway.prompts == []

    @pytest.mark.parametrize("body", [{}, {"prompt": 42}, {"prompt": "  "}, ["a lake"]])
    def test_prompt_must_be_a_string(self, client, body):
        response = client.post("/api/generate-image", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Prompt is required and must be a string"}

    def test_provider_failure_is_reported(self):
        client = TestClient(create_app(gateway=_StubGateway(GatewayError("DALL-E API error: 500 - boom"))))

        response = client.post("/api/generate-image", json={"prompt": "a lake"})

        assert response.status_code == 502
        assert response.json() == {"error": "DALL-E API error: 500 - boom"}


    def test_unexpected_failure_is_a_generic_500(self, caplog):
        client = TestClient(create_app(gateway=_StubGateway(KeyError("url")), settings=AppSettings()))

        response = client.post("/api/generate-image", json={"prompt": "a lake"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate image"}
        assert "Unexpected error while generating an image" in caplog.text


class TestChatRoute:
    def test_reply_is_returned(self, gateway):
        chat = _StubChat()
        client = TestClient(create_app(gateway=gateway, settings=AppSettings(), chat=chat))

        response = client.post("/api/chat", json={"message": "hi"})

        assert response.status_code == 200
        assert response.json() == {"response": "Hello from the wall"}
        assert chat.messages == ["hi"]

    @pytest.mark.parametrize("body", [{}, {"message": 3}, {"message": ""}, ["hi"]])
    def test_message_must_be_a_string(self, gateway, body):
        chat = _StubChat()
        client = TestClient(create_app(gateway=gateway, settings=AppSettings(), chat=chat))

        response = client.post("/api/chat", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required and must be a string"}
        assert chat.messages == []

    def test_invalid_json_is_a_bad_request(self, client):
        response = client.post("/api/chat", content="{message", headers={"content-type": "application/json"})

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required and must be a string"}

    def test_upstream_failure_is_hidden(self, gateway, caplog):
        chat = _StubChat(error=LLMError("OpenAI API error: 401 - bad key"))
        client = TestClient(create_app(gateway=gateway, settings=AppSettings(), chat=chat))

        response = client.post("/api/chat", json={"message": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to get response from LLM"}
        assert "401 - bad key" in caplog.text

    def test_missing_key_fails_only_the_chat_route(self, client):
        response = client.post("/api/chat", json={"message": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to get response from LLM"}
        assert client.get("/health").status_code == 200


class TestAuxiliaryRoutes:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_test_route_get(self, client):
        payload = client.get("/api/test").json()
        assert payload["message"] == "API route is working"
        assert isinstance(payload["timestamp"], int)

    def test_test_route_echoes_post(self, client):
        payload = client.post("/api/test", json={"hello": "wall"}).json()
        assert payload["message"] == "POST is working"
        assert payload["received"] == {"hello": "wall"}

    def test_test_route_rejects_bad_json(self, client):
        response = client.post("/api/test", content="nope", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert response.json()["error"] == "Failed to parse request"
