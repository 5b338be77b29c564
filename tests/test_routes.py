"""HTTP and WebSocket tests through FastAPI's TestClient."""
import pytest
from fastapi.testclient import TestClient

from zenqa.main import app
from zenqa.services.broadcaster import Broadcaster, get_broadcaster
from zenqa.services.pipeline import get_pipeline

LOGIN_STORY = "As a user, I want to login to the application"


@pytest.fixture
def client(pipeline, data_dir, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(data_dir))
    relay = Broadcaster()
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_broadcaster] = lambda: relay
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestStoryRoutes:
    """Submitting and listing stories."""

    def test_generate_test_cases(self, client):
        """A valid story returns the synthesized cases."""
        response = client.post("/api/generate-testcases", json={"user_story": LOGIN_STORY})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["total_test_cases"] == 4
        assert body["analysis"]["category"] == "Authentication"
        assert body["user_story_info"]["duplicate"] is False

    def test_short_story_is_400(self, client):
        """Validation failures use the structured error body."""
        response = client.post("/api/generate-testcases", json={"user_story": "short"})
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["success"] is False
        assert detail["error"] == "validation_error"
        assert detail["message"] == "User story too short"

    def test_long_story_is_400(self, client):
        """Over-long stories get the same structured body, not a 422."""
        story = "As a user, I want to search " + "x" * 5000
        response = client.post("/api/generate-testcases", json={"user_story": story})
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "validation_error"
        assert detail["message"] == "User story too long"

    def test_list_and_filter(self, client):
        """Stored stories can be listed by category, ignoring case."""
        client.post("/api/generate-testcases", json={"user_story": LOGIN_STORY})
        client.post("/api/generate-testcases", json={"user_story": "As a user, I want to search for products"})

        everything = client.get("/api/user-stories").json()
        assert everything["total_count"] == 2

        search = client.get("/api/user-stories/category/search").json()
        assert search["total_count"] == 1
        assert search["user_stories"][0]["category"] == "Search"

    def test_upload_story(self, client):
        response = client.post("/api/upload-userstory", json={
            "file_content": "As a user, I want to upload my profile picture",
            "file_name": "story.txt",
        })
        assert response.status_code == 200
        assert response.json()["record"]["source"] == "Uploaded from story.txt"


class TestGenerationRoutes:
    """Steps and automation code."""

    def test_steps_then_code(self, client):
        """The full flow over HTTP."""
        submitted = client.post("/api/generate-testcases", json={"user_story": LOGIN_STORY}).json()

        steps = client.post("/api/create-test-steps", json={
            "test_cases": submitted["test_cases"][:1],
            "user_story": LOGIN_STORY,
        })
        assert steps.status_code == 200
        detailed = steps.json()["detailed_test_cases"]
        assert detailed[0]["test_case_id"] == "TC_AUTH_001"

        code = client.post("/api/generate-automation-from-steps", json={
            "detailed_test_cases": detailed,
        })
        assert code.status_code == 200
        body = code.json()
        assert body["framework"] == "playwright"
        assert "void testTC_AUTH_001()" in body["automation_code"]

    def test_code_before_steps_is_400(self, client):
        """No detailed steps snapshot means no code."""
        response = client.post("/api/generate-automation-from-steps", json={
            "detailed_test_cases": [{
                "test_case_id": "TC_1",
                "name": "Verify login",
                "steps": ["Navigate to the login page"],
            }],
        })
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "precondition_not_met"

    def test_empty_steps_request_is_400(self, client):
        response = client.post("/api/create-test-steps", json={"test_cases": []})
        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Test cases are required"

    def test_upload_test_cases(self, client):
        response = client.post("/api/upload-testcases", json={
            "file_content": "Verify checkout flow\nVerify refund flow\n",
            "file_name": "cases.txt",
        })
        assert response.status_code == 200
        assert response.json()["record_count"] == 2

    def test_upload_without_file_is_400(self, client):
        response = client.post("/api/upload-testcases", json={"file_content": "", "file_name": ""})
        assert response.status_code == 400


class TestRealtimeRelay:
    """The /ws broadcast channel."""

    def test_message_reaches_every_listener(self, client):
        """The sender hears its own message along with everyone else."""
        with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
            first.send_text("steps ready")
            assert first.receive_text() == "steps ready"
            assert second.receive_text() == "steps ready"

    def test_binary_message_is_relayed(self, client):
        """Opaque bytes reach every listener unchanged."""
        with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
            first.send_bytes(b"\x00\x01opaque")
            assert second.receive_bytes() == b"\x00\x01opaque"
            assert first.receive_bytes() == b"\x00\x01opaque"

    def test_closed_listener_is_unregistered(self, client):
        relay = app.dependency_overrides[get_broadcaster]()
        with client.websocket_connect("/ws") as listener:
            listener.send_bytes(b"ping")
            assert listener.receive_bytes() == b"ping"
            assert len(relay.connections) == 1
        assert relay.connections == []
