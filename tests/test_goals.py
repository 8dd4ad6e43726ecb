"""Goal generation and evaluation stages."""

import json

import pytest

from cognisim.cognition.context import EvaluateGoalState, GenerateGoalsState
from cognisim.cognition.goals import (
    apply_evaluation,
    default_evaluation,
    evaluate_goal_progress,
    generate_goals,
)
from cognisim.errors import TransportFailure
from cognisim.schemas import Goal, GoalEvaluation


def _patch_oracle(monkeypatch, reply):
    prompts = []

    async def fake_call_oracle(prompt, system_prompt, caller_id, *, gateway=None):
        prompts.append(prompt)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    monkeypatch.setattr("cognisim.cognition.goals.call_oracle", fake_call_oracle)
    return prompts


def _goal(**overrides):
    data = {
        "id": "learn-sequence",
        "description": "Learn the light sequence",
        "priority": 2,
        "type": "short_term",
        "success_criteria": ["sequence known"],
        "progress_indicators": ["flashes observed"],
    }
    data.update(overrides)
    return Goal(**data)


@pytest.mark.asyncio
async def test_generate_goals_parses_batch(monkeypatch):
    reply = json.dumps(
        {
            "goals": [
                {"id": "g1", "description": "Watch the lights", "priority": 3, "type": "immediate"},
                {"id": "g2", "description": "Help Bob", "priority": 1, "type": "long_term"},
            ]
        }
    )
    prompts = _patch_oracle(monkeypatch, reply)

    goals = await generate_goals(GenerateGoalsState(name="Alice", role="keeper"))

    assert [goal.id for goal in goals] == ["g1", "g2"]
    assert all(goal.status == "active" and goal.progress == 0 for goal in goals)
    assert "You are Alice, keeper." in prompts[0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        "```json\nnot json\n```",
        '{"goals": [{"id": "g1", "description": "ok", "type": "immediate"}, {"id": "g2", "type": "someday"}]}',
        '{"plan": {}}',
        TransportFailure("down"),
    ],
)
async def test_generate_goals_failure_yields_empty_list(monkeypatch, reply):
    _patch_oracle(monkeypatch, reply)

    assert await generate_goals(GenerateGoalsState(name="Alice")) == []


@pytest.mark.asyncio
async def test_evaluate_goal_progress_parses_evaluation(monkeypatch):
    reply = json.dumps(
        {
            "evaluation": {
                "complete": False,
                "progress": 0.5,
                "criteria_met": [],
                "criteria_partial": ["sequence known"],
                "criteria_blocked": [],
                "recent_advancements": ["saw three flashes"],
                "blockers": [],
                "next_steps": ["watch again"],
            }
        }
    )
    prompts = _patch_oracle(monkeypatch, reply)
    state = EvaluateGoalState.for_goal(_goal(progress=0.25), name="Alice")

    evaluation = await evaluate_goal_progress(state)

    assert evaluation.progress == 0.5
    assert evaluation.next_steps == ["watch again"]
    assert "Goal: Learn the light sequence" in prompts[0]
    assert "Progress so far (0-1): 0.25" in prompts[0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        TransportFailure("timeout"),
        "garbage",
        '{"evaluation": {"complete": true, "progress": 7}}',
    ],
)
async def test_evaluate_goal_progress_default_on_failure(monkeypatch, reply):
    _patch_oracle(monkeypatch, reply)

    evaluation = await evaluate_goal_progress(
        EvaluateGoalState(name="Alice", goal_description="x", goal_type="immediate")
    )

    assert evaluation == GoalEvaluation(
        complete=False,
        progress=0,
        criteria_met=[],
        criteria_partial=[],
        criteria_blocked=[],
        recent_advancements=[],
        blockers=[],
        next_steps=[],
    )
    assert evaluation == default_evaluation()


def test_apply_evaluation_marks_completion():
    goal = _goal()

    progressed = apply_evaluation(goal, GoalEvaluation(progress=0.4))
    finished = apply_evaluation(goal, GoalEvaluation(complete=True, progress=0.9))

    assert progressed.progress == 0.4
    assert progressed.status == "active"
    assert finished.status == "completed"
    assert finished.progress == 1.0
    assert goal.status == "active"


def test_apply_evaluation_keeps_goal_on_failure_verdict():
    goal = _goal().model_copy(update={"progress": 0.6})

    kept = apply_evaluation(goal, default_evaluation())
    reported_zero = apply_evaluation(goal, GoalEvaluation(complete=False, progress=0.0))

    assert kept is goal
    assert kept.progress == 0.6
    assert reported_zero.progress == 0.0
