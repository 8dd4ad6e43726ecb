"""Goal manager: goal generation and per-goal progress evaluation.

Both operations degrade instead of raising. Generation falls back to no
goals and evaluation to the shared "nothing achieved yet" verdict.
``apply_evaluation`` recognises that verdict and leaves the goal untouched, so
a failed oracle call never moves a goal forward or back.
"""

from __future__ import annotations

from typing import List, Optional

from cognisim.decoding import ModelValidator, decode_envelope, validate
from cognisim.logging_utils import log_debug, log_error
from cognisim.oracle import OracleGateway, call_oracle
from cognisim.schemas import Goal, GoalEvaluation

from .context import EvaluateGoalState, GenerateGoalsState
from .prompts import EVALUATE_GOAL_PROGRESS, GENERATE_GOALS, PromptLibrary, build_prompt

GOAL_BATCH = ModelValidator(List[Goal], name="goal batch")
GOAL_EVALUATION = ModelValidator(GoalEvaluation)

_FAILED_EVALUATION = GoalEvaluation(complete=False, progress=0.0)


def default_evaluation() -> GoalEvaluation:
    """Verdict used when evaluation fails: incomplete, no progress, nothing listed."""
    return _FAILED_EVALUATION


def is_default_evaluation(evaluation: GoalEvaluation) -> bool:
    return evaluation is _FAILED_EVALUATION


async def generate_goals(
    state: GenerateGoalsState,
    *,
    gateway: Optional[OracleGateway] = None,
    prompt_library: Optional[PromptLibrary] = None,
) -> List[Goal]:
    """Ask the oracle for the agent's goal set. Any failure yields ``[]``."""

    try:
        prompt = build_prompt(GENERATE_GOALS, state.prompt_payload(), prompt_library)
        text = await call_oracle(prompt, state.system_prompt, state.caller_id, gateway=gateway)
        goals = validate(decode_envelope(text, "goals"), GOAL_BATCH)
    except Exception as exc:
        log_error(f"[{state.caller_id}] Goal generation failed: {exc}")
        return []

    log_debug(f"[{state.caller_id}] Generated {len(goals)} goal(s)")
    return goals


async def evaluate_goal_progress(
    state: EvaluateGoalState,
    *,
    gateway: Optional[OracleGateway] = None,
    prompt_library: Optional[PromptLibrary] = None,
) -> GoalEvaluation:
    """Score one goal. Never raises."""

    try:
        prompt = build_prompt(EVALUATE_GOAL_PROGRESS, state.prompt_payload(), prompt_library)
        text = await call_oracle(prompt, state.system_prompt, state.caller_id, gateway=gateway)
        evaluation = validate(decode_envelope(text, "evaluation"), GOAL_EVALUATION)
    except Exception as exc:
        log_error(
            f"[{state.caller_id}] Goal evaluation failed for '{state.goal_description}': {exc}"
        )
        return default_evaluation()

    log_debug(
        f"[{state.caller_id}] '{state.goal_description}' progress={evaluation.progress:.2f} "
        f"complete={evaluation.complete}"
    )
    return evaluation


def apply_evaluation(goal: Goal, evaluation: GoalEvaluation) -> Goal:
    """Copy of ``goal`` with the evaluated progress; ``complete`` marks it completed.

    The failure verdict from ``default_evaluation`` returns ``goal`` unchanged.
    """

    if is_default_evaluation(evaluation):
        return goal
    update = {"progress": evaluation.progress}
    if evaluation.complete:
        update.update(progress=1.0, status="completed")
    return goal.model_copy(update=update)


__all__ = [
    "GOAL_BATCH",
    "GOAL_EVALUATION",
    "apply_evaluation",
    "default_evaluation",
    "evaluate_goal_progress",
    "generate_goals",
    "is_default_evaluation",
]
