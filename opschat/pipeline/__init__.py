"""
Pipeline package for OpsChat.

Contains the LangGraph chat orchestrator and the shared database readiness task.
"""

from opschat.pipeline.orchestrator import ChatOrchestrator
from opschat.pipeline.readiness import StoreReadiness

__all__ = ["ChatOrchestrator", "StoreReadiness"]
