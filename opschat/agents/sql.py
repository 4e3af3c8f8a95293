"""
SQLPipeline: question -> SQL -> rows, with one corrective retry.

The pipeline is a two-stage machine:

    GENERATE  schema hints + question go through the SQL chain; the output is
              sanitized and executed.
    CORRECT   entered at most once, after a failed GENERATE. The live schema,
              the failed statement and the database error go straight to the
              model, and the corrected statement is executed. Any failure here
              is terminal and raises SQLPipelineError.

A failure is an execution error, an empty statement after sanitizing (never
sent to the database), or rows that cannot be turned into JSON-safe records.
"""

import json
import logging
from enum import Enum
from typing import Any

from opschat.agents.base import BaseAgent
from opschat.agents.sanitizer import extract_statement, sanitize_sql
from opschat.agents.schema_hints import get_schema_hints
from opschat.connectors.base import BaseConnector, ConnectorError, QueryError
from opschat.llm.sql_chain import SQLQueryChain
from opschat.models.chat import QueryResult
from opschat.models.errors import (
    AssistantError,
    ResultDecodeError,
    SQLGenerationError,
    SQLPipelineError,
)

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    GENERATE = "generate"
    CORRECT = "correct"


_RETRYABLE = (QueryError, SQLGenerationError, ResultDecodeError)


class SQLPipeline(BaseAgent):
    """Generate, sanitize and execute SQL for a natural-language question."""

    def __init__(
        self,
        connector: BaseConnector,
        llm_provider=None,
        sql_chain: SQLQueryChain | None = None,
        dialect: str = "postgresql",
        top_k: int = 5,
        prompts=None,
    ):
        """
        Initialize the pipeline.

        Args:
            connector: Business database the statements run against
            llm_provider: Optional LLM provider. If None, creates default provider.
            sql_chain: Optional pre-built chain (defaults to one bound to connector)
            dialect: SQL dialect the chain targets
            top_k: Row cap suggested to the chain
        """
        super().__init__(name="SQLPipeline", llm_provider=llm_provider, prompts=prompts)
        self.connector = connector
        self.chain = sql_chain or SQLQueryChain(
            llm=self.llm,
            connector=connector,
            dialect=dialect,
            top_k=top_k,
            prompts=self.prompts,
        )

    async def run(self, question: str) -> QueryResult:
        """
        Answer a question with rows from the database.

        Raises:
            SQLPipelineError: If the corrected statement also fails
            LLMError: If the SQL chain itself cannot reach the model
        """
        stage = PipelineStage.GENERATE
        failed_sql = ""
        error_message = ""

        while True:
            if stage is PipelineStage.GENERATE:
                sql = await self._generate(question)
            else:
                try:
                    sql = await self._correct(question, failed_sql, error_message)
                except (AssistantError, ConnectorError) as e:
                    raise SQLPipelineError(_message(e), context={"question": question}) from e

            try:
                rows = await self._execute(sql)
            except _RETRYABLE as e:
                error_message = _message(e)
                logger.warning(
                    f"SQL {stage.value} attempt failed: {error_message}",
                    extra={"stage": stage.value, "sql": sql[:200]},
                )
                if stage is PipelineStage.CORRECT:
                    raise SQLPipelineError(
                        error_message, context={"question": question, "sql": sql}
                    ) from e
                failed_sql = sql
                stage = PipelineStage.CORRECT
                continue

            attempts = 1 if stage is PipelineStage.GENERATE else 2
            logger.info(
                f"SQL succeeded on attempt {attempts}, returned {len(rows)} rows",
                extra={"stage": stage.value, "attempts": attempts, "row_count": len(rows)},
            )
            return QueryResult(sql=sql, rows=rows, row_count=len(rows), attempts=attempts)

    def compose_question(self, question: str) -> str:
        return self.prompts.render(
            "agents/sql_generation.md",
            schema_hints=get_schema_hints(),
            question=question,
        )

    async def _generate(self, question: str) -> str:
        raw = await self.chain.invoke(self.compose_question(question))
        sql = sanitize_sql(raw)
        logger.info(f"Generated SQL: {sql}", extra={"stage": PipelineStage.GENERATE.value})
        return sql

    async def _correct(self, question: str, failed_sql: str, error_message: str) -> str:
        schema = await self.connector.describe_schema()
        prompt = self.prompts.render(
            "agents/sql_correction.md",
            failed_sql=failed_sql,
            error=error_message,
            schema=schema,
            question=question,
        )
        sql = extract_statement(sanitize_sql(await self._complete(prompt)))
        logger.info(f"Corrected SQL: {sql}", extra={"stage": PipelineStage.CORRECT.value})
        return sql

    async def _execute(self, sql: str) -> list[dict[str, Any]]:
        if not sql:
            raise SQLGenerationError(self.name, "No SQL statement was generated")
        result = await self.connector.execute(sql)
        return self._to_records(result.rows)

    def _to_records(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        try:
            return json.loads(json.dumps(rows, default=str))
        except (TypeError, ValueError) as e:
            raise ResultDecodeError(self.name, f"Could not decode query results: {e}") from e


def _message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error)
