"""Perception narrative and thought/action synthesis.

These two stages bracket the agent tick: ``process_stimulus`` turns raw
stimuli into first-person prose, and ``generate_thought`` produces the
thought plus optional tool action the caller will execute.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError

from cognisim.decoding import decode
from cognisim.errors import DecodeFailure, ValidationFailure
from cognisim.logging_utils import log_debug, log_error
from cognisim.oracle import OracleGateway, call_oracle
from cognisim.schemas import Appearance, Experience, ThoughtResponse, ToolAction

from .context import AgentState, ProcessStimulusState
from .prompts import GENERATE_THOUGHT, PROCESS_STIMULUS, PromptLibrary, build_prompt
from .tools import describe_tools, find_tool, tool_schemas

NOTHING_TO_THINK = "I have nothing to think about at the moment."
MIND_BLANK = "My mind is blank right now."
NOTHING_PERCEIVED = "I perceive nothing of note."
PERCEPTION_TROUBLE = "I am having trouble processing my surroundings."


def format_experience(experience: Experience) -> str:
    try:
        clock = datetime.fromtimestamp(experience.timestamp / 1000).strftime("%H:%M:%S")
    except (OverflowError, ValueError, OSError):
        # Outside the platform clock range
        clock = f"{experience.timestamp:g}"
    return f"[{clock}] <{experience.type.upper()}> {experience.content}"


def format_experiences(experiences: Iterable[Experience]) -> str:
    """Chronological ``[HH:MM:SS] <TYPE> content`` lines (local time)."""

    ordered = sorted(experiences, key=lambda experience: experience.timestamp)
    return "\n".join(format_experience(experience) for experience in ordered)


def thought_context(state: AgentState) -> Dict[str, Any]:
    """Prompt context for the thought template."""

    payload = state.prompt_payload()
    payload["experiences"] = format_experiences(state.experiences)
    payload["tools"] = describe_tools(state.available_tools)
    payload["tool_schemas"] = tool_schemas(state.available_tools)
    return payload


async def process_stimulus(
    state: ProcessStimulusState,
    *,
    gateway: Optional[OracleGateway] = None,
    prompt_library: Optional[PromptLibrary] = None,
) -> str:
    """First-person narrative of what the agent perceives right now."""

    try:
        prompt = build_prompt(PROCESS_STIMULUS, state.prompt_payload(), prompt_library)
        text = await call_oracle(prompt, state.system_prompt, state.caller_id, gateway=gateway)
    except Exception as exc:
        log_error(f"[{state.caller_id}] Error processing stimulus: {exc}")
        return PERCEPTION_TROUBLE
    return text if text.strip() else NOTHING_PERCEIVED


async def generate_thought(
    state: AgentState,
    *,
    gateway: Optional[OracleGateway] = None,
    prompt_library: Optional[PromptLibrary] = None,
) -> ThoughtResponse:
    """Synthesize the agent's thought and optional tool action.

    Degrades in steps rather than failing:

    * response is not JSON: the raw text becomes the thought
    * action parameters fail the tool's validator: only the thought survives
    * anything else goes wrong: a fixed "mind is blank" thought

    Actions naming a tool the agent does not have are passed through as-is.
    """

    try:
        prompt = build_prompt(GENERATE_THOUGHT, thought_context(state), prompt_library)
        text = await call_oracle(prompt, state.system_prompt, state.caller_id, gateway=gateway)
        return _interpret_thought(state, text)
    except Exception as exc:
        log_error(f"[{state.caller_id}] Error in thought generation: {exc}")
        return ThoughtResponse(thought=MIND_BLANK)


def _interpret_thought(state: AgentState, text: str) -> ThoughtResponse:
    try:
        document = decode(text)
        if not isinstance(document, dict):
            raise DecodeFailure("Thought response is not a JSON object", text=text)
    except DecodeFailure as exc:
        log_error(f"[{state.caller_id}] Failed to parse thought response: {exc}")
        return ThoughtResponse(thought=text or NOTHING_TO_THINK)

    thought = document.get("thought")
    if not isinstance(thought, str) or not thought:
        thought = NOTHING_TO_THINK

    action: Optional[ToolAction] = None
    raw_action = document.get("action")
    if raw_action is not None:
        try:
            action = _check_action(state, raw_action)
        except (ValidationError, ValidationFailure) as exc:
            log_error(f"[{state.caller_id}] Action validation failed: {exc}")
            return ThoughtResponse(thought=thought)

    appearance: Optional[Appearance] = None
    raw_appearance = document.get("appearance")
    if raw_appearance is not None:
        try:
            appearance = Appearance.model_validate(raw_appearance)
        except ValidationError as exc:
            log_debug(f"[{state.caller_id}] Ignoring malformed appearance: {exc}")

    return ThoughtResponse(thought=thought, action=action, appearance=appearance)


def _check_action(state: AgentState, raw_action: Any) -> ToolAction:
    action = ToolAction.model_validate(raw_action)
    tool = find_tool(state.available_tools, action.tool)
    if tool is None:
        # Unregistered tools pass through unvalidated; the caller decides what to do
        log_debug(f"[{state.caller_id}] Passing through action for unregistered tool '{action.tool}'")
        return action
    tool.check_parameters(action.parameters)
    return action


__all__ = [
    "MIND_BLANK",
    "NOTHING_PERCEIVED",
    "NOTHING_TO_THINK",
    "PERCEPTION_TROUBLE",
    "format_experience",
    "format_experiences",
    "generate_thought",
    "process_stimulus",
    "thought_context",
]
