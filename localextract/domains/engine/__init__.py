"""
Engine Domain - Lifecycle of the local inference engine.

This domain handles:
- Single-flight construction of the shared engine
- Load progress and state-change subscriptions
- Mandatory warm-up before readiness
"""

from .contracts import EngineFactory, InferenceEngine, ProgressCallback
from .lifecycle import WARMUP_REQUEST, EngineLifecycleManager
from .models import ChatMessage, Completion, EngineState, GenerationRequest, ProgressEvent

__all__ = [
    # Contracts
    "InferenceEngine",
    "EngineFactory",
    "ProgressCallback",
    # Models
    "EngineState",
    "ProgressEvent",
    "ChatMessage",
    "GenerationRequest",
    "Completion",
    # Implementations
    "EngineLifecycleManager",
    "WARMUP_REQUEST",
]
