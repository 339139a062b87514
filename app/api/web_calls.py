"""Web call, call history and credential gateway endpoints."""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from app.api.auth import require_auth
from app.api.errors import to_http_exception
from app.core.dependencies import get_retell_client
from app.core.errors import CallDashboardError, InvalidAgent
from app.services.retell.client import RetellClient
from app.services.retell.models import BatchCallRequest
from app.services.web_call.embed import render_embed_snippet

router = APIRouter(dependencies=[Depends(require_auth)])
logger = logging.getLogger(__name__)


class CreateWebCallRequest(BaseModel):
    agent_id: str = ""


class WebCallCreatedResponse(BaseModel):
    call_id: str
    access_token: str


class ListCallsRequest(BaseModel):
    limit: int = Field(default=50, ge=1, le=1000)


class BatchCallCreatedResponse(BaseModel):
    batch_call_id: str


@router.get("/api/credentials/retell")
async def get_api_key(client: RetellClient = Depends(get_retell_client)):
    """Pass the stored provider key through to the dashboard."""
    try:
        return {"RETELL_API_KEY": client.get_api_key()}
    except CallDashboardError as e:
        raise to_http_exception(e)


@router.post("/api/web-calls", response_model=WebCallCreatedResponse)
async def create_web_call(
    body: CreateWebCallRequest,
    client: RetellClient = Depends(get_retell_client),
):
    """Create a web call for an agent."""
    agent_id = body.agent_id.strip()
    logger.info(f"[WEB CALL] Create web call requested with agent_id: {agent_id!r}")
    try:
        if not agent_id:
            raise InvalidAgent()
        web_call = await client.create_web_call(agent_id)
    except CallDashboardError as e:
        logger.error(f"[WEB CALL] Error creating web call: {e}")
        raise to_http_exception(e)

    return WebCallCreatedResponse(call_id=web_call.call_id, access_token=web_call.access_token)


@router.get("/api/web-calls/embed-snippet", response_class=PlainTextResponse)
async def get_embed_snippet(access_token: Optional[str] = None):
    """HTML for a call button that third-party sites can paste in."""
    return render_embed_snippet(access_token)


@router.post("/api/calls/list")
async def list_calls(
    body: ListCallsRequest,
    client: RetellClient = Depends(get_retell_client),
) -> Dict[str, List[Dict[str, Any]]]:
    """List recent calls, newest first."""
    try:
        calls = await client.list_calls(limit=body.limit)
    except CallDashboardError as e:
        logger.error(f"[CALLS] Error fetching calls: {e}")
        raise to_http_exception(e)

    logger.info(f"[CALLS] Fetched {len(calls)} calls")
    return {"calls": [call.as_dict() for call in calls]}


@router.post("/api/batch-calls", response_model=BatchCallCreatedResponse)
async def create_batch_call(
    body: BatchCallRequest,
    client: RetellClient = Depends(get_retell_client),
):
    """Create an outbound batch call."""
    try:
        result = await client.create_batch_call(body)
    except CallDashboardError as e:
        logger.error(f"[CALLS] Error creating batch call: {e}")
        raise to_http_exception(e)

    return BatchCallCreatedResponse(batch_call_id=result.batch_call_id)
