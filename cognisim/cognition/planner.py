"""Plan manager: one step-sequenced plan per goal.

Unlike the other stages, planning has no safe default. An empty or made-up
plan would be indistinguishable from a real one, so every failure is logged
and re-raised to the caller.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from cognisim.decoding import ModelValidator, decode_envelope, validate
from cognisim.errors import ValidationFailure
from cognisim.logging_utils import log_error, log_llm
from cognisim.oracle import OracleGateway, call_oracle
from cognisim.schemas import Plan

from .context import GeneratePlanState
from .prompts import GENERATE_PLAN, PromptLibrary, build_prompt

PLAN = ModelValidator(Plan)


def now_ms() -> float:
    return time.time() * 1000


async def generate_plan(
    state: GeneratePlanState,
    *,
    gateway: Optional[OracleGateway] = None,
    prompt_library: Optional[PromptLibrary] = None,
    now: Optional[float] = None,
) -> Plan:
    """Ask the oracle for a plan pursuing ``state.goal``.

    The returned plan is stamped with ``now`` (ms) for both ``created_at`` and
    ``updated_at`` and forced to ``status="active"``. A plan naming a
    different goal than the one requested is rejected.

    Raises:
        TransportFailure: the oracle call failed.
        DecodeFailure: the response was not JSON.
        ValidationFailure: the plan envelope or its fields were invalid.
    """

    log_llm(f"[{state.caller_id}] Planning for goal '{state.goal.description}'")
    try:
        prompt = build_prompt(GENERATE_PLAN, state.prompt_payload(), prompt_library)
        text = await call_oracle(prompt, state.system_prompt, state.caller_id, gateway=gateway)
        raw = decode_envelope(text, "plan")
        plan = validate(_with_goal_id(raw, state.goal.id), PLAN)
    except Exception as exc:
        log_error(f"[{state.caller_id}] Plan generation failed for goal '{state.goal.id}': {exc}")
        raise

    stamp = now_ms() if now is None else now
    return plan.model_copy(update={"status": "active", "created_at": stamp, "updated_at": stamp})


def _with_goal_id(raw: Any, goal_id: str) -> Any:
    if not isinstance(raw, dict):
        return raw
    found = raw.get("goal_id")
    if found in (None, ""):
        return {**raw, "goal_id": goal_id}
    if str(found) != goal_id:
        raise ValidationFailure(
            "Plan targets a different goal",
            issues=[f"goal_id: expected '{goal_id}' | received={found!r}"],
        )
    return raw


__all__ = ["PLAN", "generate_plan", "now_ms"]
