"""Per-call state objects fed into prompt composition.

Each cognition stage receives one of these states. They are built fresh for
every call, frozen, and discarded once the prompt is composed.
``prompt_payload`` produces the mapping the composer resolves placeholders
against; it never contains the system prompt or tool validators.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from cognisim.schemas import Experience, Goal, Plan, PlanStep, StimulusData

from .tools import ToolDescriptor, tool_summaries

NONE_TEXT = "(none)"


class StageState(BaseModel):
    """Fields shared by every stage state."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: str = ""
    system_prompt: str = ""
    agent_id: Optional[str] = None

    @property
    def caller_id(self) -> str:
        """Id the oracle audit log files this call under."""
        return self.agent_id or self.name

    def prompt_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", exclude={"system_prompt", "available_tools"})
        # Absent optional values read better than a dangling placeholder
        return {key: NONE_TEXT if value is None else value for key, value in payload.items()}


class ProcessStimulusState(StageState):
    current_timestamp: float
    time_since_last_perception: float = 0
    recent_perceptions: str = ""
    last_action: Optional[Dict[str, Any]] = None
    stimulus: List[StimulusData] = Field(default_factory=list)
    current_goals: List[Goal] = Field(default_factory=list)
    active_plans: List[Plan] = Field(default_factory=list)
    recent_experiences: List[Experience] = Field(default_factory=list)
    context: Optional[Dict[str, Any]] = None


class ExtractExperiencesState(StageState):
    timestamp: float
    perception_summary: str = ""
    perception_context: List[Any] = Field(default_factory=list)
    stimulus: List[StimulusData] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)
    recent_experiences: List[Experience] = Field(default_factory=list)


class GenerateGoalsState(StageState):
    current_goals: List[Goal] = Field(default_factory=list)
    recent_experiences: List[Experience] = Field(default_factory=list)
    perception_summary: str = ""
    perception_context: Any = ""


class EvaluateGoalState(StageState):
    goal_description: str
    goal_type: str
    current_progress: float = 0.0
    success_criteria: List[str] = Field(default_factory=list)
    progress_indicators: List[str] = Field(default_factory=list)
    recent_experiences: List[Experience] = Field(default_factory=list)
    perception_summary: str = ""
    perception_context: Any = ""

    @classmethod
    def for_goal(cls, goal: Goal, **kwargs: Any) -> "EvaluateGoalState":
        return cls(
            goal_description=goal.description,
            goal_type=goal.type,
            current_progress=goal.progress,
            success_criteria=goal.success_criteria,
            progress_indicators=goal.progress_indicators,
            **kwargs,
        )


class DetectChangesState(StageState):
    current_goals: List[Goal] = Field(default_factory=list)
    recent_experiences: List[Experience] = Field(default_factory=list)
    perception_summary: str = ""
    perception_context: Any = ""


class GeneratePlanState(StageState):
    goal: Goal
    current_plans: List[Plan] = Field(default_factory=list)
    recent_experiences: List[Experience] = Field(default_factory=list)
    available_tools: Tuple[ToolDescriptor, ...] = ()

    def prompt_payload(self) -> Dict[str, Any]:
        payload = super().prompt_payload()
        payload["available_tools"] = tool_summaries(self.available_tools)
        return payload


class PerceptionSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    narrative: str = ""
    raw: List[StimulusData] = Field(default_factory=list)


class CurrentPlanStep(BaseModel):
    """The step each active plan is on."""

    model_config = ConfigDict(frozen=True)

    plan_id: str
    goal_id: str
    step: PlanStep


class AgentState(StageState):
    """Everything the thought/action synthesizer sees."""

    thought_history: List[str] = Field(default_factory=list)
    perceptions: PerceptionSnapshot = Field(default_factory=PerceptionSnapshot)
    last_action: Optional[Dict[str, Any]] = None
    time_since_last_action: Optional[float] = None
    experiences: List[Experience] = Field(default_factory=list)
    available_tools: Tuple[ToolDescriptor, ...] = ()
    goals: List[Goal] = Field(default_factory=list)
    active_goals: List[Goal] = Field(default_factory=list)
    active_plans: List[Plan] = Field(default_factory=list)
    current_plan_steps: List[CurrentPlanStep] = Field(default_factory=list)


__all__ = [
    "AgentState",
    "CurrentPlanStep",
    "DetectChangesState",
    "EvaluateGoalState",
    "ExtractExperiencesState",
    "GenerateGoalsState",
    "GeneratePlanState",
    "NONE_TEXT",
    "PerceptionSnapshot",
    "ProcessStimulusState",
    "StageState",
]
