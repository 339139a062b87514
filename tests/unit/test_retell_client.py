"""Unit tests for the Retell API client."""
import httpx
import pytest

from app.core.errors import ConfigurationError, InvalidAgent, UpstreamError
from app.services.retell.client import RetellClient
from app.services.retell.models import BatchCallRequest


class TestCreateWebCall:
    """Test create-web-call."""

    async def test_create_web_call(self, retell_client, retell_api):
        retell_api.add(
            "POST",
            "/v2/create-web-call",
            json_body={"call_id": "call_1", "access_token": "tok_1", "call_status": "registered"},
        )

        web_call = await retell_client.create_web_call("agent_123")

        assert web_call.call_id == "call_1"
        assert web_call.access_token == "tok_1"
        request = retell_api.requests[-1]
        assert request.headers["Authorization"] == "Bearer test-retell-key"
        assert retell_api.last_json() == {"agent_id": "agent_123"}

    async def test_missing_access_token_is_upstream_error(self, retell_client, retell_api):
        retell_api.add("POST", "/v2/create-web-call", json_body={"call_id": "call_1"})

        with pytest.raises(UpstreamError) as exc_info:
            await retell_client.create_web_call("agent_123")

        assert "Invalid response from server" in exc_info.value.body

    async def test_missing_call_id_is_upstream_error(self, retell_client, retell_api):
        retell_api.add("POST", "/v2/create-web-call", json_body={"access_token": "tok_1"})

        with pytest.raises(UpstreamError):
            await retell_client.create_web_call("agent_123")

    async def test_empty_access_token_is_upstream_error(self, retell_client, retell_api):
        retell_api.add(
            "POST", "/v2/create-web-call", json_body={"call_id": "call_1", "access_token": ""}
        )

        with pytest.raises(UpstreamError):
            await retell_client.create_web_call("agent_123")

    async def test_non_success_status_carries_status_and_body(self, retell_client, retell_api):
        retell_api.add("POST", "/v2/create-web-call", status=422, text="agent not found")

        with pytest.raises(UpstreamError) as exc_info:
            await retell_client.create_web_call("agent_123")

        assert exc_info.value.status == 422
        assert exc_info.value.body == "agent not found"
        assert exc_info.value.message == "422 - agent not found"

    async def test_non_json_body_is_upstream_error(self, retell_client, retell_api):
        retell_api.add("POST", "/v2/create-web-call", status=200, text="<html>")

        with pytest.raises(UpstreamError):
            await retell_client.create_web_call("agent_123")

    async def test_transport_error(self, retell_client, retell_api):
        retell_api.add(
            "POST", "/v2/create-web-call", json_body=httpx.ConnectError("connection refused")
        )

        with pytest.raises(UpstreamError) as exc_info:
            await retell_client.create_web_call("agent_123")

        assert exc_info.value.status == 0

    async def test_empty_agent_makes_no_request(self, retell_client, retell_api):
        with pytest.raises(InvalidAgent):
            await retell_client.create_web_call("")

        assert retell_api.requests == []


class TestAgentsAndCalls:
    """Test listing endpoints."""

    async def test_list_agents(self, retell_client, retell_api):
        retell_api.add(
            "GET",
            "/list-agents",
            json_body=[
                {"agent_id": "agent_1", "agent_name": "Support", "voice_id": "11labs-Adrian"},
                {"agent_id": "agent_2", "agent_name": None},
            ],
        )

        agents = await retell_client.list_agents()

        assert [a.agent_id for a in agents] == ["agent_1", "agent_2"]
        assert agents[0].display_name == "Support"
        assert agents[1].display_name == "agent_2"

    async def test_list_agents_bad_shape(self, retell_client, retell_api):
        retell_api.add("GET", "/list-agents", json_body={"agents": []})

        with pytest.raises(UpstreamError):
            await retell_client.list_agents()

    async def test_get_agent(self, retell_client, retell_api):
        retell_api.add(
            "GET", "/get-agent/agent_1", json_body={"agent_id": "agent_1", "language": "en-US"}
        )

        agent = await retell_client.get_agent("agent_1")

        assert agent["language"] == "en-US"

    async def test_list_calls(self, retell_client, retell_api):
        retell_api.add(
            "POST",
            "/v2/list-calls",
            json_body=[{"call_id": "call_1", "call_type": "web_call", "duration_ms": 1200}],
        )

        calls = await retell_client.list_calls(limit=10)

        assert retell_api.last_json() == {"limit": 10, "sort_order": "descending"}
        assert calls[0].call_id == "call_1"
        assert calls[0].as_dict()["duration_ms"] == 1200

    async def test_create_batch_call(self, retell_client, retell_api):
        retell_api.add("POST", "/create-batch-call", json_body={"batch_call_id": "batch_1"})
        request = BatchCallRequest(
            from_number="+14155550100",
            tasks=[{"to_number": "+14155550101"}, {"to_number": " +14155550102 "}],
        )

        result = await retell_client.create_batch_call(request)

        assert result.batch_call_id == "batch_1"
        assert retell_api.last_json() == {
            "from_number": "+14155550100",
            "tasks": [{"to_number": "+14155550101"}, {"to_number": "+14155550102"}],
        }


class TestCredentials:
    """Test the pass-through key."""

    def test_get_api_key(self, retell_client):
        assert retell_client.get_api_key() == "test-retell-key"

    async def test_missing_key(self, retell_api):
        client = RetellClient(api_key="", transport=retell_api.transport)

        with pytest.raises(ConfigurationError):
            await client.list_agents()

        assert retell_api.requests == []
