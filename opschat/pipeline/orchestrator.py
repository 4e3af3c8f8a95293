"""
OpsChat Chat Orchestrator

LangGraph state machine wiring the assistant's components for one request:

    gate ──small talk──> small_talk ─────────────────────────────> END
      └──database──> readiness -> understanding -> sql -> synthesis -> END
                         └────────────┴──────────────┴──> error_handler -> END

Every ``chat`` call records exactly one user turn and one assistant turn and
always returns a ChatOutcome; failures become an apology with an error field.
"""

import logging
import time
from typing import Any, TypedDict

from langgraph.graph import END, StateGraph

from opschat.agents.classifier import ConversationalGate, QueryClassifier
from opschat.agents.followup import FollowUpResolver
from opschat.agents.response_synthesis import ResponseSynthesisAgent
from opschat.agents.sql import SQLPipeline
from opschat.agents.understanding import QueryUnderstandingAgent
from opschat.config import AssistantSettings, get_settings
from opschat.connectors.base import BaseConnector
from opschat.conversations.store import InMemorySessionStore, SessionStore
from opschat.llm.base import BaseLLMProvider
from opschat.llm.factory import LLMProviderFactory
from opschat.models.chat import ChatOutcome, QueryResult, QueryUnderstanding, Turn
from opschat.pipeline.readiness import StoreReadiness
from opschat.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)

MIN_FOLLOWUP_HISTORY = 2


class ChatState(TypedDict, total=False):
    """State carried through the chat graph for a single request."""

    query: str
    session_id: str
    conversational: bool
    understanding: QueryUnderstanding | None
    query_result: QueryResult | None
    answer: str | None
    outcome_type: str | None
    current_step: str | None
    error: str | None


def apology(message: str) -> str:
    return f"I encountered an error: {message}. Please try rephrasing your question."


class ChatOrchestrator:
    """
    Conversational front door of the assistant.

    Usage:
        orchestrator = ChatOrchestrator(connector=connector, llm_provider=provider)
        orchestrator.readiness.start()

        outcome = await orchestrator.chat("How many jobs are pending?", "session-1")
        print(outcome.answer)
    """

    def __init__(
        self,
        connector: BaseConnector,
        llm_provider: BaseLLMProvider | None = None,
        store: SessionStore | None = None,
        readiness: StoreReadiness | None = None,
        gate: QueryClassifier | None = None,
        settings: AssistantSettings | None = None,
        understanding: QueryUnderstandingAgent | None = None,
        sql_pipeline: SQLPipeline | None = None,
        followup: FollowUpResolver | None = None,
        synthesis: ResponseSynthesisAgent | None = None,
    ):
        """
        Initialize orchestrator with its collaborators.

        Args:
            connector: Business database connector
            llm_provider: LLM provider shared by all agents (default from settings)
            store: Session history store (default: in-memory)
            readiness: Memoized database initialization (default: connector.connect)
            gate: Classifier for small talk (default: ConversationalGate)
            settings: Assistant behavior settings (default from get_settings())
        """
        self.connector = connector
        self.settings = settings or get_settings().assistant
        self.llm = llm_provider or LLMProviderFactory.create_default_provider(get_settings().llm)
        self.store = store or InMemorySessionStore(max_turns=self.settings.max_history_turns)
        self.readiness = readiness or StoreReadiness(connector.connect)
        self.gate = gate or ConversationalGate()

        prompts = PromptLoader()
        self.understanding = understanding or QueryUnderstandingAgent(
            llm_provider=self.llm, prompts=prompts
        )
        self.sql_pipeline = sql_pipeline or SQLPipeline(
            connector=connector,
            llm_provider=self.llm,
            dialect=self.settings.dialect,
            top_k=self.settings.sql_top_k,
            prompts=prompts,
        )
        self.followup = followup or FollowUpResolver(
            llm_provider=self.llm,
            context_turns=self.settings.rewrite_context_turns,
            prompts=prompts,
        )
        self.synthesis = synthesis or ResponseSynthesisAgent(llm_provider=self.llm, prompts=prompts)

        self.graph = self._build_graph()
        logger.info("ChatOrchestrator initialized")

    def _build_graph(self):
        """
        Build LangGraph state machine.

        Returns:
            Compiled LangGraph
        """
        workflow = StateGraph(ChatState)

        workflow.add_node("gate", self._run_gate)
        workflow.add_node("small_talk", self._run_small_talk)
        workflow.add_node("readiness", self._run_readiness)
        workflow.add_node("understanding", self._run_understanding)
        workflow.add_node("sql", self._run_sql)
        workflow.add_node("synthesis", self._run_synthesis)
        workflow.add_node("error_handler", self._handle_error)

        workflow.set_entry_point("gate")

        workflow.add_conditional_edges(
            "gate",
            self._route_after_gate,
            {"small_talk": "small_talk", "database": "readiness"},
        )
        workflow.add_conditional_edges(
            "readiness",
            self._route_on_error,
            {"continue": "understanding", "error": "error_handler"},
        )
        workflow.add_edge("understanding", "sql")
        workflow.add_conditional_edges(
            "sql",
            self._route_on_error,
            {"continue": "synthesis", "error": "error_handler"},
        )
        workflow.add_conditional_edges(
            "synthesis",
            self._route_on_error,
            {"continue": END, "error": "error_handler"},
        )
        workflow.add_edge("small_talk", END)
        workflow.add_edge("error_handler", END)

        return workflow.compile()

    # ========================================================================
    # Graph Nodes
    # ========================================================================

    async def _run_gate(self, state: ChatState) -> ChatState:
        state["current_step"] = "gate"
        state["conversational"] = self.gate.matches(state["query"])
        return state

    async def _run_small_talk(self, state: ChatState) -> ChatState:
        state["current_step"] = "small_talk"
        state["answer"] = await self.synthesis.small_talk(state["query"])
        state["outcome_type"] = "conversational"
        return state

    async def _run_readiness(self, state: ChatState) -> ChatState:
        state["current_step"] = "readiness"
        try:
            await self.readiness.wait()
        except Exception as exc:
            state["error"] = _error_message(exc)
        return state

    async def _run_understanding(self, state: ChatState) -> ChatState:
        state["current_step"] = "understanding"
        state["understanding"] = await self.understanding.execute(state["query"])
        return state

    async def _run_sql(self, state: ChatState) -> ChatState:
        state["current_step"] = "sql"
        try:
            state["query_result"] = await self.sql_pipeline.run(state["query"])
        except Exception as exc:
            state["error"] = _error_message(exc)
        return state

    async def _run_synthesis(self, state: ChatState) -> ChatState:
        state["current_step"] = "synthesis"
        try:
            history = self.store.get(state["session_id"], self.settings.answer_context_turns)
            state["answer"] = await self.synthesis.execute(
                query=state["query"],
                understanding=state["understanding"],
                result=state["query_result"],
                history=history,
            )
            state["outcome_type"] = "database_query"
        except Exception as exc:
            state["error"] = _error_message(exc)
        return state

    async def _handle_error(self, state: ChatState) -> ChatState:
        logger.error(
            f"Chat failed during {state.get('current_step')}: {state.get('error')}",
            extra={"session_id": state.get("session_id"), "step": state.get("current_step")},
        )
        state["answer"] = apology(state.get("error") or "Unknown error")
        state["outcome_type"] = "error"
        return state

    # ========================================================================
    # Conditional Edge Logic
    # ========================================================================

    def _route_after_gate(self, state: ChatState) -> str:
        return "small_talk" if state.get("conversational") else "database"

    def _route_on_error(self, state: ChatState) -> str:
        return "error" if state.get("error") else "continue"

    # ========================================================================
    # Public API
    # ========================================================================

    async def chat(self, query: str, session_id: str) -> ChatOutcome:
        """
        Answer one question within a session.

        Never raises: failures are returned as an ``error`` outcome whose answer
        is an apology.
        """
        logger.info(f"Processing query: {query[:100]}", extra={"session_id": session_id})
        start_time = time.time()
        self.store.append(session_id, "user", query)

        initial_state: ChatState = {
            "query": query,
            "session_id": session_id,
            "conversational": False,
            "understanding": None,
            "query_result": None,
            "answer": None,
            "outcome_type": None,
            "current_step": None,
            "error": None,
        }

        try:
            result = await self.graph.ainvoke(initial_state)
            outcome = self._build_outcome(result)
        except Exception as exc:
            logger.exception(f"Chat graph failed: {exc}", extra={"session_id": session_id})
            message = _error_message(exc)
            outcome = ChatOutcome(answer=apology(message), type="error", error=message)

        self.store.append(session_id, "assistant", outcome.answer)

        logger.info(
            f"Chat complete in {(time.time() - start_time) * 1000:.1f}ms ({outcome.type})",
            extra={"session_id": session_id, "outcome_type": outcome.type},
        )
        return outcome

    async def chat_with_follow_up(self, query: str, session_id: str) -> ChatOutcome:
        """Like ``chat``, but first rewrites follow-up questions using recent turns."""
        history = self.store.get(session_id, self.settings.followup_history_window)
        if len(history) < MIN_FOLLOWUP_HISTORY:
            return await self.chat(query, session_id)

        resolved = await self.followup.resolve(query, history)
        return await self.chat(resolved, session_id)

    def status(self) -> dict[str, Any]:
        return {
            "database": self.readiness.state,
            "llm": "ready",
            "sessions": self.store.session_count(),
        }

    def get_history(self, session_id: str, limit: int | None = None) -> list[Turn]:
        return self.store.get(session_id, limit or self.settings.default_history_limit)

    def export_history(self, session_id: str, format: str = "json") -> str:
        """
        Export a session's full history.

        Raises:
            ValueError: If format is not "json" or "csv"
        """
        return self.store.export(session_id, format)

    def clear_history(self, session_id: str) -> None:
        self.store.clear(session_id)

    def clear_all_caches(self) -> None:
        self.store.clear_all()
        logger.info("Cleared all sessions")

    def _build_outcome(self, state: ChatState) -> ChatOutcome:
        outcome_type = state.get("outcome_type")
        if outcome_type == "conversational":
            return ChatOutcome(answer=state["answer"], type="conversational")
        if outcome_type == "database_query":
            result = state["query_result"]
            understanding = state["understanding"]
            return ChatOutcome(
                answer=state["answer"],
                type="database_query",
                data=result.rows,
                row_count=result.row_count,
                intent=understanding.intent,
                entities=understanding.entities,
            )
        message = state.get("error") or "Unknown error"
        return ChatOutcome(answer=state.get("answer") or apology(message), type="error", error=message)


def _error_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc) or type(exc).__name__
