from __future__ import annotations

import asyncio

import pytest

from app.errors import (
    AgentSelectionError,
    CoordinatorMissingError,
    InvalidRequestError,
    PersistenceError,
    UpstreamCompletionError,
)
from app.models.coordination import MEMORY_IMPORTANCE, MEMORY_KEY_PREFIX, CoordinationPattern, SessionPhase
from app.services.orchestration import CoordinationRequest

from conftest import InMemoryStore, RecordingCompletion


def _run(coro):  # noqa: ANN001
    return asyncio.run(coro)


def _request(**overrides) -> CoordinationRequest:  # noqa: ANN003
    values = {
        "task": "review landing page",
        "user_id": "user-1",
        "required_specializations": ["seo", "legal"],
        "pattern": CoordinationPattern.PARALLEL,
    }
    values.update(overrides)
    return CoordinationRequest(**values)


@pytest.fixture
def team(make_agent):
    return [
        make_agent("Lead", "coordination"),
        make_agent("Writer", "copywriting"),
        make_agent("SEO Bot", "seo"),
        make_agent("Counsel", "legal"),
        make_agent("Retired", "seo", active=False),
    ]


def test_unknown_specialization_creates_no_session_and_no_calls(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    service = make_service(store, completion)

    with pytest.raises(AgentSelectionError):
        _run(service.coordinate(_request(required_specializations=["nonexistent"])))

    assert completion.calls == []
    assert store.sessions == {}
    assert store.memories == []


def test_empty_specializations_rejected_before_registry_lookup(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    service = make_service(store, completion)

    with pytest.raises(InvalidRequestError):
        _run(service.coordinate(_request(required_specializations=[])))

    assert store.registry_queries == []
    assert store.sessions == {}


def test_unknown_pattern_is_an_invalid_request(team, completion, make_service) -> None:
    service = make_service(InMemoryStore(team), completion)

    with pytest.raises(InvalidRequestError):
        _run(service.coordinate(_request(pattern="round-robin")))


def test_inactive_agents_are_never_selected(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    outcome = _run(make_service(store, completion).coordinate(_request(required_specializations=["seo"])))

    assert outcome.agents_used == [{"name": "SEO Bot", "specialization": "seo"}]


def test_parallel_scenario_end_to_end(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    outcome = _run(make_service(store, completion).coordinate(_request()))

    responses = outcome.results["responses"]
    assert outcome.results["coordination_type"] == "parallel"
    assert len(responses) == 2
    assert all(response["input"] == "review landing page" for response in responses)
    assert outcome.results["synthesis"]
    assert outcome.pattern is CoordinationPattern.PARALLEL
    assert outcome.performance_score == pytest.approx(0.8)
    assert outcome.agents_used == [
        {"name": "SEO Bot", "specialization": "seo"},
        {"name": "Counsel", "specialization": "legal"},
    ]


def test_hierarchical_scenario_end_to_end(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    request = _request(
        task="launch message for product X",
        required_specializations=["coordination", "copywriting"],
        pattern=CoordinationPattern.HIERARCHICAL,
    )

    outcome = _run(make_service(store, completion).coordinate(request))

    assert outcome.results["plan"]
    assert [step["specialization"] for step in outcome.results["specialist_outputs"]] == ["copywriting"]
    assert outcome.results["final_synthesis"]
    assert outcome.performance_score >= 0.5 + 0.2


def test_hierarchical_without_coordinator_creates_no_session(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    request = _request(required_specializations=["copywriting", "seo"], pattern=CoordinationPattern.HIERARCHICAL)

    with pytest.raises(CoordinatorMissingError):
        _run(make_service(store, completion).coordinate(request))

    assert completion.calls == []
    assert store.sessions == {}


def test_sequential_session_lifecycle_is_persisted(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    request = _request(
        required_specializations=["copywriting", "seo"],
        pattern=CoordinationPattern.SEQUENTIAL,
        session_id="client-session-9",
    )

    outcome = _run(make_service(store, completion).coordinate(request))

    row = store.sessions[outcome.session_id]
    assert row["user_id"] == "user-1"
    assert row["session_name"] == "Task: review landing page..."
    assert row["primary_objective"] == "review landing page"
    assert row["agents_involved"] == [team[1].id, team[2].id]
    assert row["coordination_pattern"] == "sequential"
    assert row["session_context"] == {
        "original_request": "review landing page",
        "client_session_id": "client-session-9",
    }
    assert row["current_phase"] == "completed"
    assert row["completed_at"]

    # results and score land together, once, with the terminal phase
    assert len(store.updates) == 1
    _, changes = store.updates[0]
    assert set(changes) == {"results", "current_phase", "completed_at", "performance_score"}
    assert changes["current_phase"] == "completed"


def test_session_name_truncates_long_tasks(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    task = "x" * 80

    outcome = _run(make_service(store, completion).coordinate(_request(task=task)))

    assert store.sessions[outcome.session_id]["session_name"] == f"Task: {'x' * 50}..."


def test_completed_session_round_trips(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    service = make_service(store, completion)

    outcome = _run(service.coordinate(_request()))
    stored = _run(service.get_session(outcome.session_id))

    assert stored is not None
    assert stored.phase is SessionPhase.COMPLETED
    assert stored.pattern is outcome.pattern
    assert stored.performance_score == outcome.performance_score
    assert stored.results == outcome.results


def test_memory_entry_summarizes_the_session(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    outcome = _run(make_service(store, completion).coordinate(_request()))

    (entry,) = store.memories
    assert entry.user_id == "user-1"
    assert entry.key.startswith(MEMORY_KEY_PREFIX)
    assert entry.importance == MEMORY_IMPORTANCE
    assert entry.value()["agents_used"] == ["SEO Bot", "Counsel"]
    assert entry.value()["coordination_pattern"] == "parallel"
    assert entry.value()["performance_score"] == outcome.performance_score


def test_memory_failure_does_not_fail_the_request(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    store.fail_memory = True

    outcome = _run(make_service(store, completion).coordinate(_request()))

    assert store.sessions[outcome.session_id]["current_phase"] == "completed"


def test_upstream_failure_marks_session_failed(team, make_service) -> None:
    store = InMemoryStore(team)
    failing = RecordingCompletion(fail_when=lambda behavior, _: behavior == team[3].behavior)

    with pytest.raises(UpstreamCompletionError):
        _run(make_service(store, failing).coordinate(_request()))

    (row,) = store.sessions.values()
    assert row["current_phase"] == "failed"
    assert "quota exceeded" in row["session_context"]["error"]
    assert row["results"] is None
    assert row["performance_score"] is None
    assert store.memories == []


def test_upstream_failure_can_leave_session_orphaned(team, make_service) -> None:
    store = InMemoryStore(team)
    failing = RecordingCompletion(fail_when=lambda *_: True)
    service = make_service(store, failing, mark_failed_sessions=False)

    with pytest.raises(UpstreamCompletionError):
        _run(service.coordinate(_request()))

    (row,) = store.sessions.values()
    assert row["current_phase"] == "running"
    assert store.updates == []


def test_session_create_failure_is_a_hard_failure(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    store.fail_create = True

    with pytest.raises(PersistenceError):
        _run(make_service(store, completion).coordinate(_request()))

    assert completion.calls == []


def test_session_update_failure_is_a_hard_failure(team, completion, make_service) -> None:
    store = InMemoryStore(team)
    store.fail_update = True

    with pytest.raises(PersistenceError):
        _run(make_service(store, completion).coordinate(_request()))

    assert len(completion.calls) == 3
    assert store.memories == []
