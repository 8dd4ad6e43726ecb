"""Experience extraction: stimuli plus history in, new validated experiences out."""

from __future__ import annotations

from typing import Iterable, List, Optional

from cognisim.decoding import ModelValidator, decode_envelope, validate
from cognisim.logging_utils import log_debug, log_error
from cognisim.oracle import OracleGateway, call_oracle
from cognisim.schemas import Experience

from .context import ExtractExperiencesState
from .prompts import EXTRACT_EXPERIENCES, PromptLibrary, build_prompt

EXPERIENCE_BATCH = ModelValidator(List[Experience], name="experience batch")


async def extract_experiences(
    state: ExtractExperiencesState,
    *,
    gateway: Optional[OracleGateway] = None,
    prompt_library: Optional[PromptLibrary] = None,
) -> List[Experience]:
    """Return the new experiences found in ``state.stimulus``.

    The batch is all-or-nothing: a single invalid element (empty content,
    non-positive timestamp, unknown type) discards every element. Any failure
    yields ``[]``. Merging into history is the caller's job.
    """

    try:
        prompt = build_prompt(EXTRACT_EXPERIENCES, state.prompt_payload(), prompt_library)
        text = await call_oracle(prompt, state.system_prompt, state.caller_id, gateway=gateway)
        experiences = validate(decode_envelope(text, "experiences"), EXPERIENCE_BATCH)
    except Exception as exc:
        log_error(f"[{state.caller_id}] Experience extraction failed, keeping history as is: {exc}")
        return []

    log_debug(f"[{state.caller_id}] Extracted {len(experiences)} experience(s)")
    return experiences


def merge_experiences(
    history: Iterable[Experience],
    new: Iterable[Experience],
) -> List[Experience]:
    """History plus ``new`` in timestamp order; exact duplicates are dropped."""

    merged: List[Experience] = []
    seen: set[tuple] = set()
    for experience in [*history, *new]:
        key = (experience.type, experience.content, experience.timestamp)
        if key in seen:
            continue
        seen.add(key)
        merged.append(experience)
    # sorted() is stable so equal timestamps keep arrival order
    return sorted(merged, key=lambda experience: experience.timestamp)


__all__ = ["EXPERIENCE_BATCH", "extract_experiences", "merge_experiences"]
