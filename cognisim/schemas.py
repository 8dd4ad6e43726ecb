"""
Pydantic schemas for the cognitive pipeline.

Every record that crosses the oracle boundary (experiences, goals, plans,
evaluations, change analyses, thoughts) is defined here. Field rules double
as the validation rules applied to decoded oracle output, so a violated
constraint here is what turns a response into a ValidationFailure.

Design Philosophy:
- snake_case keys on the wire and in Python
- Timestamps are milliseconds since the Unix epoch
- Perceived/produced records (stimuli, experiences) are frozen
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


ExperienceType = Literal["speech", "action", "observation", "thought"]
GoalType = Literal["long_term", "short_term", "immediate"]
GoalStatus = Literal["active", "completed", "failed", "suspended"]
StepStatus = Literal["pending", "in_progress", "completed", "failed"]
PlanStatus = Literal["active", "completed", "failed", "suspended"]

MAINTAIN_GOALS = "maintain_goals"


def _new_id() -> str:
    return uuid4().hex


# ============================================================================
# Perception
# ============================================================================


class StimulusData(BaseModel):
    """A typed event an agent perceives. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Kind/category of stimulus (visual, auditory, speech, ...)")
    content: Union[str, Dict[str, Any]] = Field(..., description="Payload as text or structured data")
    timestamp: float = Field(..., ge=0, description="When the stimulus was produced (ms)")
    # Source lets the narrative attribute speech or actions to another entity
    source: Optional[str] = Field(None, description="Originating entity name or id")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Free-form extra data")


class Experience(BaseModel):
    """A validated, timestamped record of something the agent did/perceived/thought.

    Rules are strict on purpose: the content must be a real non-empty string and
    the timestamp a positive number (no string coercion). One bad element
    invalidates the whole batch it arrived in.
    """

    model_config = ConfigDict(frozen=True)

    type: ExperienceType = Field(..., description="speech, action, observation or thought")
    content: str = Field(..., min_length=1, strict=True, description="What happened")
    timestamp: float = Field(
        ..., gt=0, strict=True, allow_inf_nan=False, description="When it happened (ms)"
    )
    category: Optional[str] = Field(None, description="Optional grouping label")


# ============================================================================
# Goals
# ============================================================================


class Goal(BaseModel):
    """A tracked objective with status and progress.

    Status changes only as a result of goal evaluation or change detection.
    Extra keys produced by the oracle are kept (extra="allow") so scenario
    prompts can attach their own goal attributes.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = Field(default_factory=_new_id, description="Unique goal identifier")
    description: str = Field(..., min_length=1, description="What the agent wants to achieve")
    priority: float = Field(1, ge=0, description="Higher means more important")
    type: GoalType = Field(..., description="long_term, short_term or immediate")
    status: GoalStatus = Field("active", description="Lifecycle status")
    progress: float = Field(0.0, ge=0, le=1, description="Completion fraction")
    deadline: Optional[float] = Field(None, description="Optional deadline (ms)")
    parent_goal_id: Optional[str] = Field(None, description="Goal this one refines")
    success_criteria: List[str] = Field(default_factory=list)
    progress_indicators: List[str] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class GoalEvaluation(BaseModel):
    """Progress assessment for a single goal."""

    model_config = ConfigDict(frozen=True)

    complete: bool = False
    progress: float = Field(0.0, ge=0, le=1)
    criteria_met: List[str] = Field(default_factory=list)
    criteria_partial: List[str] = Field(default_factory=list)
    criteria_blocked: List[str] = Field(default_factory=list)
    recent_advancements: List[str] = Field(default_factory=list)
    blockers: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)


class ChangeAnalysis(BaseModel):
    """Whether experience/goal drift warrants re-planning."""

    significant_change: bool = False
    changes: List[Any] = Field(default_factory=list)
    recommendation: str = Field(
        MAINTAIN_GOALS,
        description="maintain_goals, or another recommendation such as update_goals",
    )
    reasoning: List[str] = Field(default_factory=list)

    @field_validator("reasoning", mode="before")
    @classmethod
    def _wrap_reasoning(cls, value: Any) -> Any:
        # Some models answer with a single sentence instead of a list
        if isinstance(value, str):
            return [value]
        return value

    @property
    def requires_new_goals(self) -> bool:
        return self.significant_change and self.recommendation != MAINTAIN_GOALS


# ============================================================================
# Plans
# ============================================================================


class PlanStep(BaseModel):
    """One step of a plan. Steps execute in list order."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(..., description="Step identifier, unique within its plan")
    description: str = Field(..., min_length=1)
    status: StepStatus = "pending"
    required_tools: Optional[List[str]] = None
    expected_outcome: str = ""


class Plan(BaseModel):
    """An ordered sequence of steps pursuing a goal."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(default_factory=_new_id)
    goal_id: str = Field(..., description="Goal this plan pursues")
    steps: List[PlanStep] = Field(default_factory=list)
    current_step_id: Optional[str] = None
    status: PlanStatus = "active"
    created_at: float = 0
    updated_at: float = 0

    @model_validator(mode="after")
    def _check_steps(self) -> "Plan":
        ids = [step.id for step in self.steps]
        if len(ids) != len(set(ids)):
            raise ValueError("plan step ids must be unique")
        if self.current_step_id is not None and self.current_step_id not in ids:
            raise ValueError(f"current_step_id '{self.current_step_id}' is not a step of this plan")
        return self

    def current_step(self) -> Optional[PlanStep]:
        """Return the step in progress, else the first step not yet finished."""
        if self.current_step_id is not None:
            for step in self.steps:
                if step.id == self.current_step_id:
                    return step
        for step in self.steps:
            if step.status in ("pending", "in_progress"):
                return step
        return None


# ============================================================================
# Thought / action
# ============================================================================


class ToolAction(BaseModel):
    """A request to invoke a tool. Execution is the caller's business."""

    tool: str
    parameters: Dict[str, Any] = Field(default_factory=dict)


class Appearance(BaseModel):
    """Outward presentation the agent chose for this tick."""

    description: Optional[str] = None
    facial_expression: Optional[str] = None
    body_language: Optional[str] = None
    current_action: Optional[str] = None
    social_cues: Optional[str] = None


class ThoughtResponse(BaseModel):
    """Sole output of the thought/action synthesizer."""

    thought: str
    action: Optional[ToolAction] = None
    appearance: Optional[Appearance] = None
