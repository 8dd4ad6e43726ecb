"""Agent tick runtime.

Bundles an agent's working memory (``AgentMind``) and runs the cognition
stages for one tick in order:

1. perception narrative
2. experience extraction, merged into history
3. goal generation (no active goals) or per-goal evaluation
4. change detection, regenerating goals on a significant change
5. a plan for every active goal that lacks one
6. thought/action synthesis

Stages within one agent run strictly in sequence. ``run_tick`` runs several
agents concurrently. Executing the chosen action is left to the caller;
``record_tick`` writes the visible outcome back into the world store.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from cognisim.config import Config
from cognisim.errors import AgentTickError
from cognisim.logging_utils import log_deterministic, log_error, log_info, log_success
from cognisim.oracle import OracleGateway
from cognisim.schemas import (
    ChangeAnalysis,
    Experience,
    Goal,
    GoalEvaluation,
    Plan,
    StimulusData,
    ThoughtResponse,
)
from cognisim.world import World, add_component

from .changes import detect_significant_changes
from .context import (
    AgentState,
    CurrentPlanStep,
    DetectChangesState,
    EvaluateGoalState,
    ExtractExperiencesState,
    GenerateGoalsState,
    GeneratePlanState,
    PerceptionSnapshot,
    ProcessStimulusState,
)
from .experiences import extract_experiences, merge_experiences
from .goals import apply_evaluation, evaluate_goal_progress, generate_goals
from .planner import generate_plan, now_ms
from .prompts import PromptLibrary
from .thought import generate_thought, process_stimulus
from .tools import ToolDescriptor

# How much of the agent's own recent output is fed back into prompts
RECENT_PERCEPTION_LIMIT = 5
THOUGHT_HISTORY_LIMIT = 5


@dataclass
class AgentMind:
    """Working memory of one agent across ticks.

    The runtime is the only writer. Callers read it between ticks and feed the
    executed action back through ``last_action``.
    """

    name: str
    role: str = ""
    system_prompt: str = ""
    agent_id: Optional[str] = None
    tools: Tuple[ToolDescriptor, ...] = ()
    experiences: List[Experience] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    plans: List[Plan] = field(default_factory=list)
    thought_history: List[str] = field(default_factory=list)
    perceptions: List[str] = field(default_factory=list)
    last_action: Optional[Dict[str, Any]] = None
    last_action_at: Optional[float] = None
    last_perception_at: Optional[float] = None
    recent_experience_limit: int = Config.RECENT_EXPERIENCE_LIMIT
    prompt_library: Optional[PromptLibrary] = None
    gateway: Optional[OracleGateway] = None

    @property
    def caller_id(self) -> str:
        return self.agent_id or self.name

    def identity(self) -> Dict[str, Any]:
        """Fields every stage state starts from."""
        return {
            "name": self.name,
            "role": self.role,
            "system_prompt": self.system_prompt,
            "agent_id": self.agent_id,
        }

    def active_goals(self) -> List[Goal]:
        return [goal for goal in self.goals if goal.is_active]

    def active_plans(self) -> List[Plan]:
        return [plan for plan in self.plans if plan.status == "active"]

    def active_plan_for(self, goal_id: str) -> Optional[Plan]:
        for plan in self.active_plans():
            if plan.goal_id == goal_id:
                return plan
        return None

    def recent_experiences(self) -> List[Experience]:
        if self.recent_experience_limit <= 0:
            return []
        return self.experiences[-self.recent_experience_limit:]

    def top_goal(self) -> Optional[Goal]:
        """Highest-priority active goal (first one wins ties)."""
        active = self.active_goals()
        if not active:
            return None
        return max(active, key=lambda goal: goal.priority)


@dataclass
class TickResult:
    """What one agent tick produced."""

    agent: str
    timestamp: float
    narrative: str
    thought: ThoughtResponse
    new_experiences: List[Experience] = field(default_factory=list)
    goals_generated: List[Goal] = field(default_factory=list)
    evaluations: Dict[str, GoalEvaluation] = field(default_factory=dict)
    analysis: Optional[ChangeAnalysis] = None
    suspended_goal_ids: List[str] = field(default_factory=list)
    new_plans: List[Plan] = field(default_factory=list)
    plan_failures: Dict[str, str] = field(default_factory=dict)
    top_goal: Optional[Goal] = None

    @property
    def action(self):
        return self.thought.action

    @property
    def appearance(self):
        return self.thought.appearance


async def run_agent_tick(
    mind: AgentMind,
    stimuli: Sequence[StimulusData],
    *,
    now: Optional[float] = None,
) -> TickResult:
    """Run every cognition stage once for ``mind`` and update it in place."""

    now = now_ms() if now is None else now
    if now <= 0:
        raise ValueError("tick timestamp must be positive (ms since epoch)")

    stimuli = list(stimuli)
    stages = {"gateway": mind.gateway, "prompt_library": mind.prompt_library}
    perception_context = [stimulus.model_dump(mode="json") for stimulus in stimuli]
    log_info(f"[{mind.caller_id}] Tick at {now:.0f} with {len(stimuli)} stimulus event(s)")

    # 1. Perception narrative
    narrative = await process_stimulus(
        ProcessStimulusState(
            **mind.identity(),
            current_timestamp=now,
            time_since_last_perception=(
                now - mind.last_perception_at if mind.last_perception_at is not None else 0
            ),
            recent_perceptions="\n".join(mind.perceptions[-RECENT_PERCEPTION_LIMIT:]),
            last_action=mind.last_action,
            stimulus=stimuli,
            current_goals=mind.goals,
            active_plans=mind.active_plans(),
            recent_experiences=mind.recent_experiences(),
        ),
        **stages,
    )
    mind.perceptions.append(narrative)
    mind.last_perception_at = now

    # 2. Experiences
    new_experiences = await extract_experiences(
        ExtractExperiencesState(
            **mind.identity(),
            timestamp=now,
            perception_summary=narrative,
            perception_context=perception_context,
            stimulus=stimuli,
            goals=mind.goals,
            recent_experiences=mind.recent_experiences(),
        ),
        **stages,
    )
    mind.experiences = merge_experiences(mind.experiences, new_experiences)

    result = TickResult(
        agent=mind.caller_id,
        timestamp=now,
        narrative=narrative,
        thought=ThoughtResponse(thought=""),
        new_experiences=new_experiences,
    )

    # 3. Goals
    if not mind.active_goals():
        generated = await generate_goals(
            GenerateGoalsState(
                **mind.identity(),
                current_goals=mind.goals,
                recent_experiences=mind.recent_experiences(),
                perception_summary=narrative,
                perception_context=perception_context,
            ),
            **stages,
        )
        mind.goals = [*mind.goals, *generated]
        result.goals_generated = generated
    else:
        await _evaluate_goals(mind, narrative, perception_context, result, stages)

    # 4. Change detection
    result.analysis = await detect_significant_changes(
        DetectChangesState(
            **mind.identity(),
            current_goals=mind.active_goals(),
            recent_experiences=mind.recent_experiences(),
            perception_summary=narrative,
            perception_context=perception_context,
        ),
        **stages,
    )
    if result.analysis.requires_new_goals:
        await _replace_goals(mind, narrative, perception_context, result, stages)

    # 5. Plans
    for goal in mind.active_goals():
        if mind.active_plan_for(goal.id) is not None:
            continue
        try:
            plan = await generate_plan(
                GeneratePlanState(
                    **mind.identity(),
                    goal=goal,
                    current_plans=mind.active_plans(),
                    recent_experiences=mind.recent_experiences(),
                    available_tools=mind.tools,
                ),
                now=now,
                **stages,
            )
        except Exception as exc:
            # The goal stays unplanned until a later tick
            result.plan_failures[goal.id] = str(exc)
            continue
        mind.plans.append(plan)
        result.new_plans.append(plan)

    # 6. Thought and action
    result.thought = await generate_thought(
        AgentState(
            **mind.identity(),
            thought_history=mind.thought_history[-THOUGHT_HISTORY_LIMIT:],
            perceptions=PerceptionSnapshot(narrative=narrative, raw=stimuli),
            last_action=mind.last_action,
            time_since_last_action=(
                now - mind.last_action_at if mind.last_action_at is not None else None
            ),
            experiences=mind.recent_experiences(),
            available_tools=mind.tools,
            goals=mind.goals,
            active_goals=mind.active_goals(),
            active_plans=mind.active_plans(),
            current_plan_steps=_current_plan_steps(mind.active_plans()),
        ),
        **stages,
    )
    mind.thought_history.append(result.thought.thought)
    mind.experiences = merge_experiences(
        mind.experiences,
        [Experience(type="thought", content=result.thought.thought, timestamp=now)],
    )
    if result.thought.action is not None:
        mind.last_action = result.thought.action.model_dump(mode="json")
        mind.last_action_at = now

    result.top_goal = mind.top_goal()
    log_success(
        f"[{mind.caller_id}] Tick complete: {len(mind.active_goals())} active goal(s), "
        f"{len(mind.active_plans())} active plan(s)"
    )
    return result


async def _evaluate_goals(
    mind: AgentMind,
    narrative: str,
    perception_context: List[Any],
    result: TickResult,
    stages: Mapping[str, Any],
) -> None:
    updated: List[Goal] = []
    for goal in mind.goals:
        if not goal.is_active:
            updated.append(goal)
            continue
        evaluation = await evaluate_goal_progress(
            EvaluateGoalState.for_goal(
                goal,
                **mind.identity(),
                recent_experiences=mind.recent_experiences(),
                perception_summary=narrative,
                perception_context=perception_context,
            ),
            **stages,
        )
        result.evaluations[goal.id] = evaluation
        evaluated = apply_evaluation(goal, evaluation)
        if evaluated.status == "completed":
            log_success(f"[{mind.caller_id}] Goal completed: {goal.description}")
            _close_plans(mind, goal.id, "completed")
        updated.append(evaluated)
    mind.goals = updated


async def _replace_goals(
    mind: AgentMind,
    narrative: str,
    perception_context: List[Any],
    result: TickResult,
    stages: Mapping[str, Any],
) -> None:
    previous = mind.active_goals()
    generated = await generate_goals(
        GenerateGoalsState(
            **mind.identity(),
            current_goals=previous,
            recent_experiences=mind.recent_experiences(),
            perception_summary=narrative,
            perception_context=perception_context,
        ),
        **stages,
    )
    if not generated:
        # Suspending everything on a failed regeneration would leave the agent aimless
        log_error(f"[{mind.caller_id}] Goal regeneration produced nothing; keeping current goals")
        return

    carried = {goal.id for goal in generated}
    kept: List[Goal] = []
    for goal in mind.goals:
        if goal.id in carried:
            continue
        if goal.is_active:
            goal = goal.model_copy(update={"status": "suspended"})
            result.suspended_goal_ids.append(goal.id)
            mind.plans = [plan for plan in mind.plans if plan.goal_id != goal.id]
        kept.append(goal)
    mind.goals = [*kept, *generated]
    result.goals_generated = [*result.goals_generated, *generated]
    log_deterministic(
        f"[{mind.caller_id}] Goals regenerated: {len(generated)} new/carried, "
        f"{len(result.suspended_goal_ids)} suspended"
    )


def _close_plans(mind: AgentMind, goal_id: str, status: str) -> None:
    mind.plans = [
        plan.model_copy(update={"status": status}) if plan.goal_id == goal_id else plan
        for plan in mind.plans
    ]


def _current_plan_steps(plans: Sequence[Plan]) -> List[CurrentPlanStep]:
    steps: List[CurrentPlanStep] = []
    for plan in plans:
        step = plan.current_step()
        if step is not None:
            steps.append(CurrentPlanStep(plan_id=plan.id, goal_id=plan.goal_id, step=step))
    return steps


async def run_tick(
    minds: Sequence[AgentMind],
    stimuli_by_agent: Mapping[str, Sequence[StimulusData]],
    *,
    now: Optional[float] = None,
) -> Dict[str, TickResult]:
    """Run one tick for every agent concurrently, keyed by caller id.

    Stimuli are looked up by caller id; agents without an entry tick on an
    empty stimulus list. If any agent fails, ``AgentTickError`` is raised
    after every agent has finished and carries the successful results.
    """

    now = now_ms() if now is None else now
    # Each agent's stages are independent, so total latency is the slowest agent
    outcomes = await asyncio.gather(
        *[run_agent_tick(mind, stimuli_by_agent.get(mind.caller_id, ()), now=now) for mind in minds],
        return_exceptions=True,
    )

    results: Dict[str, TickResult] = {}
    failures: Dict[str, BaseException] = {}
    for mind, outcome in zip(minds, outcomes):
        if isinstance(outcome, BaseException):
            log_error(f"[{mind.caller_id}] Tick failed: {outcome}")
            failures[mind.caller_id] = outcome
        else:
            results[mind.caller_id] = outcome

    if failures:
        raise AgentTickError(failures, results)
    return results


def record_tick(world: World, entity: int, result: TickResult) -> None:
    """Write the tick's visible outcome onto ``entity``.

    The leading goal goes into ``Goal.value`` and the chosen appearance
    description into ``Description.value``. Components the world does not
    bind are skipped; nothing is written for absent values.
    """

    bound = {component.name for component in world.components}
    written: List[str] = []
    if "Goal" in bound and result.top_goal is not None:
        add_component(world, entity, "Goal", {"value": result.top_goal.description})
        written.append("Goal")
    appearance = result.appearance
    if "Description" in bound and appearance is not None and appearance.description:
        add_component(world, entity, "Description", {"value": appearance.description})
        written.append("Description")
    if written:
        log_deterministic(f"Recorded {', '.join(written)} of '{result.agent}' on entity {entity}")


__all__ = ["AgentMind", "TickResult", "record_tick", "run_agent_tick", "run_tick"]
