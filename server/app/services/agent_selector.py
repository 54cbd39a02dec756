"""Agent selection against the registry."""
from __future__ import annotations

import logging
from typing import Iterable, Protocol, Sequence

from ..errors import AgentSelectionError, InvalidRequestError
from ..models.coordination import Agent

logger = logging.getLogger(__name__)


class AgentRegistry(Protocol):
    """Read-through view of the agent catalog; queried fresh on every request."""

    async def fetch_active_agents(self, specializations: Sequence[str]) -> list[Agent]:
        ...


async def select_agents(registry: AgentRegistry, specializations: Iterable[str]) -> list[Agent]:
    """Return active agents whose specialization was requested, in registry order."""

    requested = list(dict.fromkeys(label for label in specializations if label))
    if not requested:
        raise InvalidRequestError("At least one required specialization must be provided")

    agents = await registry.fetch_active_agents(requested)
    # Registry adapters filter already; keep the contract even if one does not.
    selected = [agent for agent in agents if agent.active and agent.specialization in requested]
    if not selected:
        raise AgentSelectionError("No suitable agents found for the task")

    logger.info(
        "Selected %d agent(s) for specializations %s: %s",
        len(selected),
        requested,
        [agent.name for agent in selected],
    )
    return selected
