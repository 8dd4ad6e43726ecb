"""Change detection: does recent experience invalidate the current goals?"""

from __future__ import annotations

from typing import Optional

from cognisim.decoding import ModelValidator, decode_envelope, validate
from cognisim.logging_utils import log_error, log_info
from cognisim.oracle import OracleGateway, call_oracle
from cognisim.schemas import MAINTAIN_GOALS, ChangeAnalysis

from .context import DetectChangesState
from .prompts import DETECT_SIGNIFICANT_CHANGES, PromptLibrary, build_prompt

CHANGE_ANALYSIS = ModelValidator(ChangeAnalysis)


def default_analysis() -> ChangeAnalysis:
    return ChangeAnalysis(
        significant_change=False,
        changes=[],
        recommendation=MAINTAIN_GOALS,
        reasoning=["Error in change detection"],
    )


async def detect_significant_changes(
    state: DetectChangesState,
    *,
    gateway: Optional[OracleGateway] = None,
    prompt_library: Optional[PromptLibrary] = None,
) -> ChangeAnalysis:
    """Analyse goal drift; on any failure report "no change" with an error reason."""

    try:
        prompt = build_prompt(DETECT_SIGNIFICANT_CHANGES, state.prompt_payload(), prompt_library)
        text = await call_oracle(prompt, state.system_prompt, state.caller_id, gateway=gateway)
        analysis = validate(decode_envelope(text, "analysis"), CHANGE_ANALYSIS)
    except Exception as exc:
        log_error(f"[{state.caller_id}] Change detection failed: {exc}")
        return default_analysis()

    if analysis.requires_new_goals:
        log_info(f"[{state.caller_id}] Significant change: {analysis.recommendation}")
    return analysis


__all__ = ["CHANGE_ANALYSIS", "default_analysis", "detect_significant_changes"]
