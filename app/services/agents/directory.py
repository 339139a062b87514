"""Agent directory backed by the call provider."""
import logging
from typing import List, Optional

from app.services.retell.client import RetellClient
from app.services.retell.models import AgentRef

logger = logging.getLogger(__name__)


class AgentDirectory:
    """
    Read-only view of the provider's agents.

    One instance per directory view: the first call to ``list_agents`` fetches
    from the provider and later calls reuse that snapshot.
    """

    def __init__(self, client: RetellClient):
        self.client = client
        self._agents: Optional[List[AgentRef]] = None

    async def list_agents(self) -> List[AgentRef]:
        """Get all agents, fetching once per directory instance."""
        if self._agents is None:
            logger.info("[AGENTS] Fetching agents from provider")
            self._agents = await self.client.list_agents()
            logger.info(f"[AGENTS] Loaded {len(self._agents)} agents")
        return list(self._agents)

    async def get_agent(self, agent_id: str) -> Optional[AgentRef]:
        """Get a listed agent by id."""
        for agent in await self.list_agents():
            if agent.agent_id == agent_id:
                return agent
        return None

    def refresh(self) -> None:
        """Drop the cached snapshot."""
        self._agents = None
