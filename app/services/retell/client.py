"""HTTP client for the Retell call provider."""
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from app.core.errors import ConfigurationError, InvalidAgent, UpstreamError
from app.core.logging import mask_secret
from app.services.retell.models import (
    AgentRef,
    BatchCallRequest,
    BatchCallResponse,
    CallSummary,
    WebCallResponse,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_URL = "https://api.retellai.com"


class RetellClient:
    """Thin async proxy over the Retell REST API."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def get_api_key(self) -> str:
        """Return the stored provider secret for pass-through use."""
        if not self.api_key:
            logger.error("RETELL_API_KEY is not configured")
            raise ConfigurationError()
        return self.api_key

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        api_key = self.get_api_key()
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.request(method, path, headers=headers, json=json)
            except httpx.HTTPError as e:
                logger.error(f"[RETELL] {method} {path} failed: {e}")
                raise UpstreamError(0, str(e))

        if not response.is_success:
            logger.error(
                f"[RETELL] {method} {path} returned {response.status_code}: {response.text}"
            )
            raise UpstreamError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError:
            raise UpstreamError(response.status_code, response.text)

    @staticmethod
    def _parse(model: Type[T], data: Any, status: int = 200) -> T:
        try:
            return TypeAdapter(model).validate_python(data)
        except ValidationError as e:
            logger.error(f"[RETELL] Unexpected response shape: {e}")
            raise UpstreamError(status, f"Invalid response from server: {data!r}")

    async def list_agents(self) -> List[AgentRef]:
        data = await self._request("GET", "/list-agents")
        return self._parse(List[AgentRef], data)

    async def get_agent(self, agent_id: str) -> Dict[str, Any]:
        if not agent_id:
            raise InvalidAgent()
        data = await self._request("GET", f"/get-agent/{agent_id}")
        return self._parse(Dict[str, Any], data)

    async def create_web_call(self, agent_id: str) -> WebCallResponse:
        """Create a web call; the response must carry call_id and access_token."""
        if not agent_id:
            raise InvalidAgent()
        logger.info(f"[RETELL] Creating web call with agent: {agent_id}")
        data = await self._request("POST", "/v2/create-web-call", json={"agent_id": agent_id})
        web_call = self._parse(WebCallResponse, data)
        logger.info(
            f"[RETELL] Created web call {web_call.call_id} "
            f"(token {mask_secret(web_call.access_token)})"
        )
        return web_call

    async def list_calls(self, limit: int = 50) -> List[CallSummary]:
        data = await self._request(
            "POST",
            "/v2/list-calls",
            json={"limit": limit, "sort_order": "descending"},
        )
        return self._parse(List[CallSummary], data)

    async def create_batch_call(self, request: BatchCallRequest) -> BatchCallResponse:
        payload = request.model_dump(exclude_none=True)
        logger.info(
            f"[RETELL] Creating batch call from {request.from_number} "
            f"with {len(request.tasks)} task(s)"
        )
        data = await self._request("POST", "/create-batch-call", json=payload)
        return self._parse(BatchCallResponse, data)
