"""
Cognisim - oracle-driven cognitive agents over an entity/component world.

Agents perceive stimuli, extract experiences, manage goals and plans, and
decide on tool actions by consulting a generative-text oracle. The world
store is a small columnar ECS the caller updates with the results.

No database, no global simulation loop. The caller owns the tick.
"""

__version__ = "0.1.0"

from .config import Config
from .errors import (
    AgentTickError,
    CognisimError,
    DecodeFailure,
    TransportFailure,
    ValidationFailure,
    WorldStoreError,
)
from .schemas import (
    Appearance,
    ChangeAnalysis,
    Experience,
    Goal,
    GoalEvaluation,
    Plan,
    PlanStep,
    StimulusData,
    ThoughtResponse,
    ToolAction,
)
from .decoding import ModelValidator, Validator, decode, decode_envelope, validate
from .audit import ConsoleAuditSink, JsonlAuditSink, MultiAuditSink, RecordingAuditSink
from .oracle import (
    MirascopeOracle,
    OracleGateway,
    build_oracle,
    call_oracle,
    set_default_gateway,
)
from .local_oracle import OllamaOracle
from .cognition import (
    AgentMind,
    TickResult,
    ToolDescriptor,
    compose,
    detect_significant_changes,
    evaluate_goal_progress,
    extract_experiences,
    generate_goals,
    generate_plan,
    generate_thought,
    process_stimulus,
    record_tick,
    run_agent_tick,
    run_tick,
)

__all__ = [
    "AgentMind",
    "AgentTickError",
    "Appearance",
    "ChangeAnalysis",
    "CognisimError",
    "Config",
    "ConsoleAuditSink",
    "DecodeFailure",
    "Experience",
    "Goal",
    "GoalEvaluation",
    "JsonlAuditSink",
    "MirascopeOracle",
    "ModelValidator",
    "MultiAuditSink",
    "OllamaOracle",
    "OracleGateway",
    "Plan",
    "PlanStep",
    "RecordingAuditSink",
    "StimulusData",
    "ThoughtResponse",
    "TickResult",
    "ToolAction",
    "ToolDescriptor",
    "TransportFailure",
    "ValidationFailure",
    "Validator",
    "WorldStoreError",
    "build_oracle",
    "call_oracle",
    "compose",
    "decode",
    "decode_envelope",
    "detect_significant_changes",
    "evaluate_goal_progress",
    "extract_experiences",
    "generate_goals",
    "generate_plan",
    "generate_thought",
    "process_stimulus",
    "record_tick",
    "run_agent_tick",
    "run_tick",
    "set_default_gateway",
    "validate",
]
