"""
OpsChat Agents Module

Components that turn a user question into an answer backed by the database.

Available Agents:
    - BaseAgent: Shared provider/prompt plumbing
    - QueryUnderstandingAgent: Intent, entity and timeframe extraction
    - SQLPipeline: SQL generation and execution with one corrective retry
    - FollowUpResolver: Standalone rewrites of follow-up questions
    - ResponseSynthesisAgent: Natural-language answers and small talk

Classifiers and helpers:
    - ConversationalGate, FollowUpDetector: QueryClassifier implementations
    - sanitize_sql, extract_statement: Model output cleanup
    - get_schema_hints: Table hints for SQL generation

Usage:
    from opschat.agents import SQLPipeline

    pipeline = SQLPipeline(connector=connector, llm_provider=provider)
    result = await pipeline.run("How many bookings are scheduled this week?")
"""

from opschat.agents.base import BaseAgent
from opschat.agents.classifier import ConversationalGate, FollowUpDetector, QueryClassifier
from opschat.agents.followup import FollowUpResolver
from opschat.agents.response_synthesis import ResponseSynthesisAgent
from opschat.agents.sanitizer import extract_statement, sanitize_sql
from opschat.agents.schema_hints import get_schema_hints
from opschat.agents.sql import PipelineStage, SQLPipeline
from opschat.agents.understanding import QueryUnderstandingAgent

__all__ = [
    "BaseAgent",
    "ConversationalGate",
    "FollowUpDetector",
    "QueryClassifier",
    "FollowUpResolver",
    "ResponseSynthesisAgent",
    "extract_statement",
    "sanitize_sql",
    "get_schema_hints",
    "PipelineStage",
    "SQLPipeline",
    "QueryUnderstandingAgent",
]
