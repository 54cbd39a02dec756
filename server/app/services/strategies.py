"""Coordination strategies: sequential hand-off, parallel fan-out, hierarchical delegation."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional, Sequence

from ..errors import CoordinatorMissingError
from ..models.coordination import (
    COORDINATOR_SPECIALIZATION,
    Agent,
    CoordinationPattern,
    CoordinationResults,
    StrategyStepResult,
)
from .completion import CompletionClient

logger = logging.getLogger(__name__)


SYNTHESIZER_BEHAVIOR = "You are a synthesizer specialized in combining insights from multiple specialists."

PARALLEL_SYNTHESIS_PROMPT = """Synthesize the responses of the different specialists into one coherent and comprehensive answer:

{responses}

Create a synthesis that combines the insights of every specialist harmoniously."""

PLAN_PROMPT = 'Create an execution plan for the task: "{task}". Available agents: {specializations}'

SPECIALIST_PROMPT = "Based on the plan: {plan}\n\nYour specific task as {specialization}: {task}"

HIERARCHICAL_SYNTHESIS_PROMPT = (
    "Synthesize the specialists' results into one coherent final answer:\n\n{results}"
)


async def _invoke(complete: CompletionClient, agent: Agent, input_text: str) -> StrategyStepResult:
    output = await complete(agent.behavior, input_text)
    return StrategyStepResult(
        agent=agent.name,
        specialization=agent.specialization,
        input=input_text,
        output=output,
    )


async def coordinate_sequentially(
    agents: Sequence[Agent], task: str, complete: CompletionClient
) -> CoordinationResults:
    """Each agent receives the previous agent's output; the first one gets the task."""

    results = CoordinationResults(pattern=CoordinationPattern.SEQUENTIAL)
    current_input = task
    for agent in agents:
        step = await _invoke(complete, agent, current_input)
        results.steps.append(step)
        current_input = step.output
    return results


async def coordinate_in_parallel(
    agents: Sequence[Agent],
    task: str,
    complete: CompletionClient,
    synthesize: Optional[CompletionClient] = None,
) -> CoordinationResults:
    """Fan the task out to every agent at once, then merge the answers in one synthesis call.

    The first failing branch cancels its siblings and fails the whole strategy;
    there is no partial-result mode.
    """

    try:
        async with asyncio.TaskGroup() as group:
            pending = [group.create_task(_invoke(complete, agent, task)) for agent in agents]
    except ExceptionGroup as failures:
        raise failures.exceptions[0]

    steps = [item.result() for item in pending]
    logger.info("Parallel fan-out finished for %d agent(s); synthesizing", len(steps))

    prompt = PARALLEL_SYNTHESIS_PROMPT.format(
        responses="\n\n".join(f"{step.specialization}: {step.output}" for step in steps)
    )
    synthesis = await (synthesize or complete)(SYNTHESIZER_BEHAVIOR, prompt)
    return CoordinationResults(pattern=CoordinationPattern.PARALLEL, steps=steps, synthesis=synthesis)


def split_coordinator(agents: Sequence[Agent]) -> tuple[Agent, list[Agent]]:
    """Return the single coordinator and the remaining specialists."""

    coordinators = [agent for agent in agents if agent.is_coordinator]
    if not coordinators:
        raise CoordinatorMissingError("Hierarchical coordination requires a coordinator agent")
    if len(coordinators) > 1:
        raise CoordinatorMissingError(
            f"Hierarchical coordination requires exactly one '{COORDINATOR_SPECIALIZATION}' agent, "
            f"found {len(coordinators)}"
        )
    specialists = [agent for agent in agents if not agent.is_coordinator]
    return coordinators[0], specialists


async def coordinate_hierarchically(
    agents: Sequence[Agent], task: str, complete: CompletionClient
) -> CoordinationResults:
    """Coordinator plans, specialists execute one at a time, coordinator synthesizes."""

    coordinator, specialists = split_coordinator(agents)

    plan = await complete(
        coordinator.behavior,
        PLAN_PROMPT.format(
            task=task,
            specializations=", ".join(specialist.specialization for specialist in specialists),
        ),
    )
    logger.info("Coordinator %s produced a plan for %d specialist(s)", coordinator.name, len(specialists))

    results = CoordinationResults(pattern=CoordinationPattern.HIERARCHICAL, plan=plan)
    for specialist in specialists:
        specialized_task = SPECIALIST_PROMPT.format(
            plan=plan, specialization=specialist.specialization, task=task
        )
        results.steps.append(await _invoke(complete, specialist, specialized_task))

    specialist_outputs = [
        {"agent": step.agent, "specialization": step.specialization, "output": step.output}
        for step in results.steps
    ]
    results.final_synthesis = await complete(
        coordinator.behavior,
        HIERARCHICAL_SYNTHESIS_PROMPT.format(
            results=json.dumps(specialist_outputs, indent=2, ensure_ascii=False)
        ),
    )
    return results
