"""Agent directory API endpoints."""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.api.auth import require_auth
from app.api.errors import to_http_exception
from app.core.dependencies import get_agent_directory, get_retell_client
from app.core.errors import CallDashboardError
from app.services.agents.directory import AgentDirectory
from app.services.retell.client import RetellClient

router = APIRouter(dependencies=[Depends(require_auth)])
logger = logging.getLogger(__name__)


class AgentResponse(BaseModel):
    """Agent response model."""
    agent_id: str
    agent_name: Optional[str] = None
    display_name: str


@router.get("/api/agents", response_model=List[AgentResponse])
async def list_agents(directory: AgentDirectory = Depends(get_agent_directory)):
    """List the provider's agents."""
    try:
        agents = await directory.list_agents()
    except CallDashboardError as e:
        logger.error(f"[AGENTS] Error fetching agents: {e}")
        raise to_http_exception(e)

    return [
        AgentResponse(
            agent_id=agent.agent_id,
            agent_name=agent.agent_name,
            display_name=agent.display_name,
        )
        for agent in agents
    ]


@router.get("/api/agents/{agent_id}")
async def get_agent(
    agent_id: str,
    client: RetellClient = Depends(get_retell_client),
) -> Dict[str, Any]:
    """Get full agent details from the provider."""
    try:
        return await client.get_agent(agent_id)
    except CallDashboardError as e:
        logger.error(f"[AGENTS] Error fetching agent {agent_id}: {e}")
        if getattr(e, "status", None) == 404:
            raise HTTPException(status_code=404, detail="Agent not found")
        raise to_http_exception(e)
