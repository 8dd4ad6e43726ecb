"""Cognition stages for cognisim agents.

Each stage composes a prompt from a frozen per-call state, calls the oracle
once and decodes the answer into a validated record. Only plan generation
raises on failure; every other stage degrades to a safe default.
"""

from .composer import compose, render_value, resolve_path
from .prompts import DEFAULT_PROMPTS, PromptLibrary, PromptTemplate, build_prompt
from .tools import ToolDescriptor, describe_tools, find_tool, tool_from_model, tool_schemas
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
from .goals import apply_evaluation, default_evaluation, evaluate_goal_progress, generate_goals
from .planner import generate_plan
from .changes import default_analysis, detect_significant_changes
from .thought import format_experiences, generate_thought, process_stimulus
from .runtime import AgentMind, TickResult, record_tick, run_agent_tick, run_tick

__all__ = [
    "AgentMind",
    "AgentState",
    "CurrentPlanStep",
    "DEFAULT_PROMPTS",
    "DetectChangesState",
    "EvaluateGoalState",
    "ExtractExperiencesState",
    "GenerateGoalsState",
    "GeneratePlanState",
    "PerceptionSnapshot",
    "ProcessStimulusState",
    "PromptLibrary",
    "PromptTemplate",
    "TickResult",
    "ToolDescriptor",
    "apply_evaluation",
    "build_prompt",
    "compose",
    "default_analysis",
    "default_evaluation",
    "describe_tools",
    "detect_significant_changes",
    "evaluate_goal_progress",
    "extract_experiences",
    "find_tool",
    "format_experiences",
    "generate_goals",
    "generate_plan",
    "generate_thought",
    "merge_experiences",
    "process_stimulus",
    "record_tick",
    "render_value",
    "resolve_path",
    "run_agent_tick",
    "run_tick",
    "tool_from_model",
    "tool_schemas",
]
