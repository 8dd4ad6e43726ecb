"""Prompt templates for each cognition stage.

Templates use ``{dotted.path}`` placeholders filled by
:func:`cognisim.cognition.composer.compose`. JSON examples inside a template
are left untouched because their brace contents never resolve to a context
key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from .composer import compose


@dataclass
class PromptTemplate:
    """Represents a templated prompt with placeholders."""

    name: str
    text: str
    description: str = ""


class PromptLibrary:
    """Container for named prompt templates per cognition stage."""

    def __init__(self) -> None:
        self.templates: Dict[str, PromptTemplate] = {}

    def register(self, template: PromptTemplate) -> None:
        self.templates[template.name] = template

    def get(self, name: str) -> PromptTemplate:
        return self.templates[name]

    def names(self) -> List[str]:
        return sorted(self.templates)


def resolve_template(
    name: str,
    library: "PromptLibrary | None" = None,
) -> PromptTemplate:
    """Look ``name`` up in ``library``, falling back to the defaults."""

    if library is not None:
        try:
            return library.get(name)
        except KeyError:
            pass
    return DEFAULT_PROMPTS.get(name)


def build_prompt(
    name: str,
    context: Mapping[str, Any],
    library: "PromptLibrary | None" = None,
) -> str:
    """Compose the ``name`` template against ``context``."""

    return compose(resolve_template(name, library).text, context)


# Stage template names
PROCESS_STIMULUS = "process_stimulus"
EXTRACT_EXPERIENCES = "extract_experiences"
GENERATE_GOALS = "generate_goals"
EVALUATE_GOAL_PROGRESS = "evaluate_goal_progress"
DETECT_SIGNIFICANT_CHANGES = "detect_significant_changes"
GENERATE_PLAN = "generate_plan"
GENERATE_THOUGHT = "generate_thought"


DEFAULT_PROMPTS = PromptLibrary()

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name=PROCESS_STIMULUS,
        text=(
            "You are {name}, {role}.\n\n"
            "Current time (ms): {current_timestamp}\n"
            "Time since your last perception (ms): {time_since_last_perception}\n\n"
            "What you noticed recently:\n{recent_perceptions}\n\n"
            "Your last action:\n{last_action}\n\n"
            "Your current goals:\n{current_goals}\n\n"
            "Your active plans:\n{active_plans}\n\n"
            "Your recent experiences:\n{recent_experiences}\n\n"
            "Additional context:\n{context}\n\n"
            "New stimuli:\n{stimulus}\n\n"
            "Describe, in first person and in a few sentences, what you are perceiving right now. "
            "Mention only what is new or relevant to your goals. Do not invent events that are not in "
            "the stimuli. Respond with plain prose, not JSON."
        ),
        description="Turns raw stimuli into a first-person perception narrative.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name=EXTRACT_EXPERIENCES,
        text=(
            "You are {name}, {role}.\n\n"
            "Current time (ms): {timestamp}\n\n"
            "Perception summary:\n{perception_summary}\n\n"
            "Perception context:\n{perception_context}\n\n"
            "New stimuli:\n{stimulus}\n\n"
            "Your goals:\n{goals}\n\n"
            "Experiences you already recorded:\n{recent_experiences}\n\n"
            "Extract the NEW experiences contained in the stimuli. Do not repeat experiences you already "
            "recorded. Each experience needs:\n"
            "- type: one of speech, action, observation, thought\n"
            "- content: a non-empty description\n"
            "- timestamp: a positive number (milliseconds)\n"
            "- category: optional short label\n\n"
            "Example output:\n"
            "{\n"
            "  \"experiences\": [\n"
            "    {\"type\": \"speech\", \"content\": \"Bob asked me what sequence the lights flashed\", "
            "\"timestamp\": 1700000000000, \"category\": \"conversation\"}\n"
            "  ]\n"
            "}\n\n"
            "Respond with JSON only."
        ),
        description="Turns stimuli plus history into a validated experience batch.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name=GENERATE_GOALS,
        text=(
            "You are {name}, {role}.\n\n"
            "Your current goals:\n{current_goals}\n\n"
            "Your recent experiences:\n{recent_experiences}\n\n"
            "Perception summary:\n{perception_summary}\n\n"
            "Perception context:\n{perception_context}\n\n"
            "Decide which goals you should pursue now. Keep goals that still matter, drop goals that no "
            "longer do, and add new ones the situation calls for. Each goal needs an id, a description, "
            "a priority (higher is more important), a type (long_term, short_term or immediate), "
            "success_criteria and progress_indicators.\n\n"
            "Example output:\n"
            "{\n"
            "  \"goals\": [\n"
            "    {\"id\": \"learn-sequence\", \"description\": \"Find out which light sequence opens the door\", "
            "\"priority\": 3, \"type\": \"short_term\", \"status\": \"active\", \"progress\": 0, "
            "\"success_criteria\": [\"door opens\"], \"progress_indicators\": [\"lights observed\"]}\n"
            "  ]\n"
            "}\n\n"
            "Respond with JSON only."
        ),
        description="Generates the agent's candidate goal set.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name=EVALUATE_GOAL_PROGRESS,
        text=(
            "You are {name}.\n\n"
            "Goal: {goal_description}\n"
            "Goal type: {goal_type}\n"
            "Progress so far (0-1): {current_progress}\n\n"
            "Success criteria:\n{success_criteria}\n\n"
            "Progress indicators:\n{progress_indicators}\n\n"
            "Recent experiences:\n{recent_experiences}\n\n"
            "Perception summary:\n{perception_summary}\n\n"
            "Perception context:\n{perception_context}\n\n"
            "Evaluate how far the goal has progressed. progress is a number between 0 and 1; set "
            "complete to true only when every success criterion is met.\n\n"
            "Example output:\n"
            "{\n"
            "  \"evaluation\": {\n"
            "    \"complete\": false,\n"
            "    \"progress\": 0.4,\n"
            "    \"criteria_met\": [\"lights observed\"],\n"
            "    \"criteria_partial\": [],\n"
            "    \"criteria_blocked\": [\"door opens\"],\n"
            "    \"recent_advancements\": [\"Saw the first three flashes\"],\n"
            "    \"blockers\": [\"Missed the end of the sequence\"],\n"
            "    \"next_steps\": [\"Watch the panel again\"]\n"
            "  }\n"
            "}\n\n"
            "Respond with JSON only."
        ),
        description="Scores progress of one goal against its success criteria.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name=DETECT_SIGNIFICANT_CHANGES,
        text=(
            "You are {name}, {role}.\n\n"
            "Your current goals:\n{current_goals}\n\n"
            "Your recent experiences:\n{recent_experiences}\n\n"
            "Perception summary:\n{perception_summary}\n\n"
            "Perception context:\n{perception_context}\n\n"
            "Decide whether anything happened that makes your current goals obsolete or calls for new "
            "ones. recommendation is \"maintain_goals\" when the goals still fit, otherwise "
            "\"update_goals\".\n\n"
            "Example output:\n"
            "{\n"
            "  \"analysis\": {\n"
            "    \"significant_change\": true,\n"
            "    \"changes\": [\"The door is already open\"],\n"
            "    \"recommendation\": \"update_goals\",\n"
            "    \"reasoning\": [\"Learning the sequence no longer matters\"]\n"
            "  }\n"
            "}\n\n"
            "Respond with JSON only."
        ),
        description="Detects experience/goal drift that warrants re-planning.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name=GENERATE_PLAN,
        text=(
            "You are {name}, {role}.\n\n"
            "Goal to plan for:\n{goal}\n\n"
            "Plans you already have:\n{current_plans}\n\n"
            "Tools you can use:\n{available_tools}\n\n"
            "Recent experiences:\n{recent_experiences}\n\n"
            "Write a step-by-step plan for this goal. Steps run in the order listed. Each step needs an "
            "id, a description, status \"pending\", the tools it needs (if any) and the expected outcome.\n\n"
            "Example output:\n"
            "{\n"
            "  \"plan\": {\n"
            "    \"id\": \"plan-learn-sequence\",\n"
            "    \"goal_id\": \"learn-sequence\",\n"
            "    \"steps\": [\n"
            "      {\"id\": \"s1\", \"description\": \"Watch the light panel\", \"status\": \"pending\", "
            "\"required_tools\": [\"observe\"], \"expected_outcome\": \"Know the flash order\"},\n"
            "      {\"id\": \"s2\", \"description\": \"Tell Bob the sequence\", \"status\": \"pending\", "
            "\"required_tools\": [\"speak\"], \"expected_outcome\": \"Bob knows the sequence\"}\n"
            "    ],\n"
            "    \"current_step_id\": \"s1\"\n"
            "  }\n"
            "}\n\n"
            "Respond with JSON only."
        ),
        description="Produces a step-sequenced plan for a single goal.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name=GENERATE_THOUGHT,
        text=(
            "You are {name}, {role}.\n\n"
            "Your experiences so far, oldest first:\n{experiences}\n\n"
            "What you perceive now:\n{perceptions.narrative}\n\n"
            "Raw perception data:\n{perceptions.raw}\n\n"
            "Your recent thoughts:\n{thought_history}\n\n"
            "Your last action:\n{last_action}\n"
            "Time since your last action (ms): {time_since_last_action}\n\n"
            "Your active goals:\n{active_goals}\n\n"
            "Your active plans:\n{active_plans}\n\n"
            "Current plan steps:\n{current_plan_steps}\n\n"
            "Available tools:\n{tools}\n\n"
            "Tool parameter schemas:\n{tool_schemas}\n\n"
            "Think about your situation, then decide whether to act. Include \"action\" only when you "
            "want to use one of the available tools, with parameters matching its schema. "
            "\"appearance\" is optional and describes how you come across to others.\n\n"
            "Example output:\n"
            "{\n"
            "  \"thought\": \"Bob wants the sequence. I saw it: A1B2C3.\",\n"
            "  \"action\": {\"tool\": \"speak\", \"parameters\": {\"message\": \"The sequence was A1B2C3.\"}},\n"
            "  \"appearance\": {\"facial_expression\": \"focused\", \"body_language\": \"leaning in\"}\n"
            "}\n\n"
            "Respond with JSON only."
        ),
        description="Master prompt producing a thought plus optional tool action.",
    )
)
