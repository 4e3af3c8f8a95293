"""
Base Database Connector

Abstract base class for the relational store the assistant queries. Provides a
consistent async interface for connecting to, querying, and introspecting the
business database.

All connectors must implement:
- connect(): Establish connection with connection pooling
- execute(): Run a statement and return its rows
- run_transaction(): Run several statements atomically
- get_schema(): Introspect tables, columns, keys
- sample_rows(): Read a few rows of one table (never routed through execute())
- close(): Clean up connections and pools

describe_schema() is shared: it renders get_schema() as CREATE TABLE text with
a few sample rows per table, which is what the SQL prompts consume.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


# ============================================================================
# Data Models
# ============================================================================


class ColumnInfo(BaseModel):
    """Information about a database column."""

    name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Column data type")
    is_nullable: bool = Field(..., description="Whether column can be NULL")
    default_value: str | None = Field(None, description="Default value if any")
    is_primary_key: bool = Field(default=False, description="Is part of primary key")
    is_foreign_key: bool = Field(default=False, description="Is a foreign key")
    foreign_table: str | None = Field(None, description="Referenced table if FK")
    foreign_column: str | None = Field(None, description="Referenced column if FK")


class TableInfo(BaseModel):
    """Information about a database table."""

    schema_name: str = Field(..., alias="schema", description="Schema name")
    table_name: str = Field(..., description="Table name")
    columns: list[ColumnInfo] = Field(..., description="List of columns")
    table_type: str = Field(default="TABLE", description="TABLE, VIEW, etc.")

    model_config = ConfigDict(populate_by_name=True)

    def to_ddl(self) -> str:
        """Render the table as a CREATE TABLE statement."""
        lines = [
            f'  "{col.name}" {col.data_type}{"" if col.is_nullable else " NOT NULL"}'
            for col in self.columns
        ]
        primary_keys = [f'"{col.name}"' for col in self.columns if col.is_primary_key]
        if primary_keys:
            lines.append(f"  PRIMARY KEY ({', '.join(primary_keys)})")
        for col in self.columns:
            if col.is_foreign_key and col.foreign_table:
                lines.append(
                    f'  FOREIGN KEY ("{col.name}") REFERENCES '
                    f'"{col.foreign_table}"("{col.foreign_column}")'
                )
        return f'CREATE TABLE "{self.table_name}" (\n' + ",\n".join(lines) + "\n)"


class QueryResult(BaseModel):
    """Result from statement execution."""

    rows: list[dict[str, Any]] = Field(..., description="Result rows")
    row_count: int = Field(..., description="Number of rows returned")
    columns: list[str] = Field(..., description="Column names")
    execution_time_ms: float = Field(..., description="Execution time in ms")


class ConnectorError(Exception):
    """Base exception for connector errors."""

    pass


class ConnectionError(ConnectorError):
    """Error establishing or managing database connection."""

    pass


class QueryError(ConnectorError):
    """
    Error executing a statement.

    Attributes:
        code: Machine-readable error code (SQLSTATE for PostgreSQL) when known
    """

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class SchemaError(ConnectorError):
    """Error introspecting database schema."""

    pass


# ============================================================================
# Base Connector
# ============================================================================


class BaseConnector(ABC):
    """
    Abstract base class for database connectors.

    Usage:
        connector = PostgresConnector(host="localhost", ...)
        await connector.connect()

        result = await connector.execute('SELECT * FROM "Job" WHERE status = $1', ["pending"])
        print(f"Found {result.row_count} rows")

        print(await connector.describe_schema())
        await connector.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        pool_size: int = 5,
        timeout: int = 30,
        schema_name: str = "public",
        **kwargs,
    ):
        """
        Initialize connector.

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Database user
            password: Database password
            pool_size: Connection pool size
            timeout: Statement timeout in seconds
            schema_name: Schema introspected by get_schema()/describe_schema()
            **kwargs: Additional connector-specific parameters
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.pool_size = pool_size
        self.timeout = timeout
        self.schema_name = schema_name
        self.kwargs = kwargs

        self._pool = None
        self._connected = False

        logger.info(f"Initialized {self.__class__.__name__} for {user}@{host}:{port}/{database}")

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish database connection and create connection pool.

        Idempotent: calling multiple times does not create multiple pools.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    async def execute(
        self,
        query: str,
        params: list[Any] | None = None,
        timeout: int | None = None,
    ) -> QueryResult:
        """
        Execute a SQL statement.

        Raises:
            QueryError: If execution fails
            ConnectionError: If not connected
        """
        pass

    @abstractmethod
    async def run_transaction(
        self, statements: list[tuple[str, list[Any] | None]]
    ) -> list[QueryResult]:
        """
        Execute statements in order inside a single transaction.

        Raises:
            QueryError: If any statement fails (the transaction is rolled back)
            ConnectionError: If not connected
        """
        pass

    @abstractmethod
    async def get_schema(self, schema_name: str | None = None) -> list[TableInfo]:
        """
        Introspect database schema.

        Raises:
            SchemaError: If schema introspection fails
        """
        pass

    @abstractmethod
    async def sample_rows(self, table: TableInfo, limit: int) -> QueryResult:
        """
        Fetch up to ``limit`` rows of a table for schema descriptions.

        Kept apart from execute() so that only caller statements go through it.

        Raises:
            QueryError: If the rows cannot be read
            ConnectionError: If not connected
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close database connection and clean up pool. Safe to call twice."""
        pass

    async def describe_schema(
        self,
        table_names: list[str] | None = None,
        sample_rows: int = 3,
    ) -> str:
        """
        Describe tables as CREATE TABLE statements followed by sample rows.

        Args:
            table_names: Restrict to these tables (None = every table)
            sample_rows: Rows shown per table (0 disables sampling)

        Returns:
            Schema description text
        """
        tables = await self.get_schema(self.schema_name)
        if table_names:
            wanted = set(table_names)
            tables = [table for table in tables if table.table_name in wanted]

        sections = []
        for table in tables:
            section = table.to_ddl()
            if sample_rows > 0:
                section += "\n\n" + await self._sample_rows_text(table, sample_rows)
            sections.append(section)

        return "\n\n".join(sections)

    async def _sample_rows_text(self, table: TableInfo, limit: int) -> str:
        header = f'/*\n{limit} rows from "{table.table_name}" table:'
        try:
            result = await self.sample_rows(table, limit)
        except QueryError as e:
            logger.warning(f"Could not sample rows from {table.table_name}: {e}")
            return f"{header}\n(unavailable)\n*/"

        column_names = [col.name for col in table.columns]
        lines = ["\t".join(column_names)]
        for row in result.rows:
            lines.append("\t".join(_format_sample_value(row.get(name)) for name in column_names))
        return header + "\n" + "\n".join(lines) + "\n*/"

    @property
    def is_connected(self) -> bool:
        """Check if connector is connected."""
        return self._connected

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"<{self.__class__.__name__} {self.user}@{self.host}:{self.port}/{self.database} ({status})>"


def _format_sample_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)[:100]
    return str(value)[:100]
