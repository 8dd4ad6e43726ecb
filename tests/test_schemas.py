"""Unit tests for the pipeline record schemas."""

import pytest
from pydantic import ValidationError

from cognisim.schemas import (
    ChangeAnalysis,
    Experience,
    Goal,
    Plan,
    PlanStep,
    StimulusData,
)


def test_goal_defaults_and_extra_fields():
    goal = Goal(description="Fix the lamp", type="immediate", mood="urgent")

    assert goal.status == "active"
    assert goal.progress == 0
    assert goal.is_active
    assert len(goal.id) == 32
    assert goal.model_dump()["mood"] == "urgent"


def test_goal_rejects_out_of_range_progress_and_bad_type():
    with pytest.raises(ValidationError):
        Goal(description="x", type="immediate", progress=1.5)
    with pytest.raises(ValidationError):
        Goal(description="x", type="eventually")


def test_numeric_ids_are_coerced_to_strings():
    goal = Goal(id=7, description="x", type="immediate")
    step = PlanStep(id=1, description="first")

    assert goal.id == "7"
    assert step.id == "1"


def test_plan_current_step_falls_back_to_first_unfinished():
    plan = Plan(
        goal_id="g",
        steps=[
            PlanStep(id="a", description="done", status="completed"),
            PlanStep(id="b", description="next"),
        ],
    )

    assert plan.current_step().id == "b"


def test_plan_current_step_follows_pointer():
    plan = Plan(
        goal_id="g",
        steps=[PlanStep(id="a", description="one"), PlanStep(id="b", description="two")],
        current_step_id="b",
    )

    assert plan.current_step().description == "two"


def test_experience_is_frozen():
    experience = Experience(type="thought", content="hmm", timestamp=1)

    with pytest.raises(ValidationError):
        experience.content = "changed"


def test_stimulus_accepts_structured_content():
    stimulus = StimulusData(type="visual", content={"lights": ["A1", "B2"]}, timestamp=0)

    assert stimulus.content == {"lights": ["A1", "B2"]}
    assert stimulus.metadata == {}


def test_change_analysis_defaults():
    analysis = ChangeAnalysis()

    assert analysis.recommendation == "maintain_goals"
    assert not analysis.requires_new_goals


@pytest.mark.parametrize("timestamp", [float("inf"), float("nan"), 0, -5])
def test_experience_rejects_unusable_timestamps(timestamp):
    with pytest.raises(ValidationError):
        Experience(type="speech", content="x", timestamp=timestamp)
