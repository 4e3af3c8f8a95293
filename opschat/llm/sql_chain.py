"""
SQL Query Chain

Schema-bound question-to-SQL capability: describes the live tables of the
connected database, asks the model for a single statement in the configured
dialect and returns the statement text. Nothing is executed here.

Usage:
    chain = SQLQueryChain(llm=provider, connector=connector, dialect="postgresql")
    sql = await chain.invoke("How many jobs are pending?")
"""

import logging

from opschat.connectors.base import BaseConnector
from opschat.llm.base import BaseLLMProvider
from opschat.llm.models import LLMRequest
from opschat.models.errors import LLMError
from opschat.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)

DIALECT_NAMES = {
    "postgresql": "PostgreSQL",
    "postgres": "PostgreSQL",
}


class SQLQueryChain:
    """Turn a natural-language question into one SQL statement."""

    def __init__(
        self,
        llm: BaseLLMProvider,
        connector: BaseConnector,
        dialect: str = "postgresql",
        top_k: int = 5,
        sample_rows: int = 3,
        prompts: PromptLoader | None = None,
    ):
        if dialect not in DIALECT_NAMES:
            raise ValueError(f"Unsupported SQL dialect: {dialect}")
        self.llm = llm
        self.connector = connector
        self.dialect = dialect
        self.top_k = top_k
        self.sample_rows = sample_rows
        self.prompts = prompts or PromptLoader()

    async def invoke(self, question: str) -> str:
        """
        Generate SQL for a question.

        Args:
            question: Question text (may already carry extra instructions)

        Returns:
            Raw statement text as produced by the model, minus chain labels

        Raises:
            LLMError: If the model call fails
        """
        table_info = await self.connector.describe_schema(sample_rows=self.sample_rows)
        prompt = self.prompts.render(
            "chains/sql_query.md",
            dialect=DIALECT_NAMES[self.dialect],
            top_k=self.top_k,
            table_info=table_info,
            question=question,
        )
        try:
            response = await self.llm.generate(LLMRequest.from_prompt(prompt))
        except Exception as e:
            logger.warning(
                "SQL chain model call failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            raise LLMError("SQLQueryChain", str(e), context={"error_type": type(e).__name__}) from e
        sql = self.parse_output(response.content)

        logger.debug(
            "SQL chain produced statement",
            extra={"dialect": self.dialect, "sql": sql[:200]},
        )
        return sql

    @staticmethod
    def parse_output(text: str) -> str:
        """Strip the ``SQLQuery:`` label and anything after ``SQLResult:``."""
        cleaned = text.strip()
        if "SQLResult:" in cleaned:
            cleaned = cleaned.split("SQLResult:", 1)[0]
        cleaned = cleaned.strip()
        if cleaned.startswith("SQLQuery:"):
            cleaned = cleaned[len("SQLQuery:") :]
        return cleaned.strip()
