"""
Unit tests for SQLPipeline.

Tests the generate -> execute -> correct-once loop:
- First-try success
- Single corrective retry on execution, empty-statement and decode failures
- Terminal failure after the retry
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from opschat.agents.sql import PipelineStage, SQLPipeline
from opschat.connectors.base import BaseConnector, ColumnInfo, QueryError, TableInfo
from opschat.connectors.base import QueryResult as ConnectorQueryResult
from opschat.models.errors import LLMError, SQLPipelineError


class Unserializable:
    def __str__(self):
        raise ValueError("cannot render")


class TestSQLPipeline:
    """Test suite for SQLPipeline."""

    @pytest.fixture
    def pipeline(self, mock_postgres_connector, mock_llm_provider):
        return SQLPipeline(connector=mock_postgres_connector, llm_provider=mock_llm_provider)

    @pytest.mark.asyncio
    async def test_first_attempt_success(
        self, pipeline, mock_llm_provider, mock_postgres_connector, make_query_result
    ):
        mock_llm_provider.set_response('```sql\nSELECT COUNT(*) AS total FROM "Job"\n```')
        mock_postgres_connector.execute.return_value = make_query_result([{"total": 14}])

        result = await pipeline.run("How many jobs are there?")

        assert result.sql == 'SELECT COUNT(*) AS total FROM "Job"'
        assert result.rows == [{"total": 14}]
        assert result.row_count == 1
        assert result.attempts == 1
        mock_postgres_connector.execute.assert_awaited_once_with(
            'SELECT COUNT(*) AS total FROM "Job"'
        )

    @pytest.mark.asyncio
    async def test_generation_prompt_carries_hints_and_question(
        self, pipeline, mock_llm_provider, mock_postgres_connector
    ):
        mock_llm_provider.set_response("SQLQuery: SELECT 1")

        await pipeline.run("Which bookings are tomorrow?")

        prompt = mock_llm_provider.prompts()[0]
        assert "PostgreSQL" in prompt
        assert "Which bookings are tomorrow?" in prompt
        assert "scheduled_date" in prompt
        assert "Return ONLY the SQL query" in prompt
        mock_postgres_connector.describe_schema.assert_awaited_once_with(sample_rows=3)

    @pytest.mark.asyncio
    async def test_execution_failure_triggers_one_correction(
        self, pipeline, mock_llm_provider, mock_postgres_connector, make_query_result
    ):
        mock_llm_provider.set_responses(
            [
                "SELECT * FROM jobs",
                'The table name is case sensitive:\nSELECT * FROM "Job" LIMIT 5',
            ]
        )
        mock_postgres_connector.execute.side_effect = [
            QueryError('relation "jobs" does not exist', code="42P01"),
            make_query_result([{"job_id": 1}]),
        ]

        result = await pipeline.run("Show me jobs")

        assert result.attempts == 2
        assert result.sql == 'SELECT * FROM "Job" LIMIT 5'
        assert result.rows == [{"job_id": 1}]

        correction_prompt = mock_llm_provider.prompts()[1]
        assert "SELECT * FROM jobs" in correction_prompt
        assert 'relation "jobs" does not exist' in correction_prompt
        assert "Show me jobs" in correction_prompt
        mock_postgres_connector.describe_schema.assert_awaited_with()

    @pytest.mark.asyncio
    async def test_at_most_two_executions(
        self, pipeline, mock_llm_provider, mock_postgres_connector
    ):
        mock_llm_provider.set_responses(["SELECT bad", "SELECT still_bad"])
        mock_postgres_connector.execute.side_effect = [
            QueryError("column bad does not exist"),
            QueryError("column still_bad does not exist"),
        ]

        with pytest.raises(SQLPipelineError) as exc_info:
            await pipeline.run("Broken question")

        assert mock_postgres_connector.execute.await_count == 2
        assert mock_llm_provider.generate.await_count == 2
        assert exc_info.value.message == "Query failed: column still_bad does not exist"
        assert exc_info.value.recoverable is False

    @pytest.mark.asyncio
    async def test_empty_statement_is_not_executed(
        self, pipeline, mock_llm_provider, mock_postgres_connector, make_query_result
    ):
        mock_llm_provider.set_responses(["```sql\n```", "SELECT 1 AS one"])
        mock_postgres_connector.execute.return_value = make_query_result([{"one": 1}])

        result = await pipeline.run("Anything")

        assert result.attempts == 2
        mock_postgres_connector.execute.assert_awaited_once_with("SELECT 1 AS one")
        assert "No SQL statement was generated" in mock_llm_provider.prompts()[1]

    @pytest.mark.asyncio
    async def test_empty_correction_fails_without_execution(
        self, pipeline, mock_llm_provider, mock_postgres_connector
    ):
        mock_llm_provider.set_responses(["", "   "])

        with pytest.raises(SQLPipelineError, match="No SQL statement was generated"):
            await pipeline.run("Anything")

        mock_postgres_connector.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rows_become_json_safe_records(
        self, pipeline, mock_llm_provider, mock_postgres_connector, make_query_result
    ):
        mock_llm_provider.set_response("SELECT scheduled_date, amount FROM x")
        mock_postgres_connector.execute.return_value = make_query_result(
            [{"scheduled_date": date(2025, 3, 1), "amount": Decimal("12.50")}]
        )

        result = await pipeline.run("When?")

        assert result.rows == [{"scheduled_date": "2025-03-01", "amount": "12.50"}]

    @pytest.mark.asyncio
    async def test_decode_failure_uses_the_retry(
        self, pipeline, mock_llm_provider, mock_postgres_connector, make_query_result
    ):
        mock_llm_provider.set_responses(["SELECT weird FROM x", "SELECT 1 AS one"])
        mock_postgres_connector.execute.side_effect = [
            make_query_result([{"weird": Unserializable()}]),
            make_query_result([{"one": 1}]),
        ]

        result = await pipeline.run("Weird")

        assert result.attempts == 2
        assert "Could not decode query results" in mock_llm_provider.prompts()[1]

    @pytest.mark.asyncio
    async def test_correction_model_failure_is_terminal(
        self, pipeline, mock_llm_provider, mock_postgres_connector
    ):
        mock_llm_provider.set_responses(["SELECT bad", RuntimeError("rate limited")])
        mock_postgres_connector.execute.side_effect = QueryError("syntax error")

        with pytest.raises(SQLPipelineError, match="rate limited"):
            await pipeline.run("Broken")

        assert mock_postgres_connector.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_generation_model_failure_raises_llm_error(
        self, pipeline, mock_llm_provider, mock_postgres_connector
    ):
        mock_llm_provider.set_responses([RuntimeError("model unavailable")])

        with pytest.raises(LLMError, match="model unavailable") as exc_info:
            await pipeline.run("Anything")

        assert exc_info.value.component == "SQLQueryChain"
        assert exc_info.value.context == {"error_type": "RuntimeError"}
        mock_postgres_connector.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_logs_failed_stage(
        self, pipeline, mock_llm_provider, mock_postgres_connector, make_query_result, caplog
    ):
        mock_llm_provider.set_responses(["SELECT bad", "SELECT 1"])
        mock_postgres_connector.execute.side_effect = [
            QueryError("boom"),
            make_query_result([]),
        ]

        await pipeline.run("Anything")

        assert any(
            getattr(record, "stage", None) == PipelineStage.GENERATE.value
            and "boom" in record.getMessage()
            for record in caplog.records
        )


def test_default_provider_from_settings(mock_postgres_connector, mock_llm_provider):
    with patch(
        "opschat.agents.base.LLMProviderFactory.create_default_provider",
        return_value=mock_llm_provider,
    ) as factory:
        pipeline = SQLPipeline(connector=mock_postgres_connector)

    factory.assert_called_once()
    assert pipeline.llm is mock_llm_provider
    assert pipeline.chain.llm is mock_llm_provider


def test_llm_error_is_an_assistant_error():
    error = LLMError("SQLPipeline", "timeout")
    assert error.to_dict()["type"] == "LLMError"


class FailingStore(BaseConnector):
    """Connector whose every statement fails; sampling and introspection work."""

    def __init__(self):
        super().__init__(host="localhost", port=5432, database="ops", user="ops", password="")
        self.statements: list[str] = []

    async def connect(self) -> None:
        self._connected = True

    async def execute(self, query, params=None, timeout=None) -> ConnectorQueryResult:
        self.statements.append(query)
        raise QueryError("syntax error at or near \"bad\"", code="42601")

    async def run_transaction(self, statements):
        raise QueryError("read only")

    async def get_schema(self, schema_name=None) -> list[TableInfo]:
        return [
            TableInfo(
                schema="public",
                table_name=name,
                columns=[ColumnInfo(name="id", data_type="integer", is_nullable=False)],
            )
            for name in ("Booking", "Customer", "Job")
        ]

    async def sample_rows(self, table, limit) -> ConnectorQueryResult:
        return ConnectorQueryResult(
            rows=[{"id": 1}], row_count=1, columns=["id"], execution_time_ms=0.1
        )

    async def close(self) -> None:
        self._connected = False


@pytest.mark.asyncio
async def test_failing_store_sees_exactly_two_statements(mock_llm_provider):
    store = FailingStore()
    pipeline = SQLPipeline(connector=store, llm_provider=mock_llm_provider)
    mock_llm_provider.set_responses(["SELECT 1", "SELECT 2"])

    with pytest.raises(SQLPipelineError):
        await pipeline.run("How many jobs?")

    assert store.statements == ["SELECT 1", "SELECT 2"]
    assert 'CREATE TABLE "Customer"' in mock_llm_provider.prompts()[0]
    assert '3 rows from "Job" table:' in mock_llm_provider.prompts()[0]
