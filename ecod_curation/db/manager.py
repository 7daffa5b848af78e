#!/usr/bin/env python3
"""
Database manager for the ECOD curation toolkit
Handles database connections and parameterized queries against the
clustering schema.
"""
import re
import psycopg2
import psycopg2.extras
import logging
from contextlib import contextmanager
from typing import Dict, Any, List, Tuple, Optional, Generator, TypeVar, Union, Callable

from ecod_curation.exceptions import ConnectionError, QueryError, DatabaseError, ConfigurationError

T = TypeVar('T')

Params = Optional[Union[Tuple, List, Dict[str, Any]]]

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

# Keys in the database section that are not psycopg2 connection arguments
_NON_CONNECT_KEYS = ('schema',)


class DBManager:
    """Database manager for the curation toolkit with schema awareness"""

    DEFAULT_SCHEMA = "swissprot"

    def __init__(self, config: Dict[str, Any]):
        """Initialize database manager

        Args:
            config: Database configuration dictionary

        Raises:
            ConnectionError: If a required connection field is missing
            ConfigurationError: If the schema name is not a plain identifier
        """
        self.config = config
        self.logger = logging.getLogger("ecod_curation.db")

        required_fields = ['host', 'port', 'database', 'user']
        for field in required_fields:
            if field not in config:
                raise ConnectionError(f"Missing required database configuration field: {field}")

        self.schema = config.get('schema') or self.DEFAULT_SCHEMA
        if not _IDENTIFIER.match(self.schema):
            raise ConfigurationError(f"Invalid database schema name: {self.schema!r}")

        self.connect_params = {k: v for k, v in config.items() if k not in _NON_CONNECT_KEYS}

    def sql(self, query: str) -> str:
        """Substitute the configured schema into a query template

        Templates refer to tables as ``{schema}.table``. Only the schema is
        formatted in; all values are bound as query parameters.
        """
        return query.format(schema=self.schema)

    @contextmanager
    def get_connection(self) -> Generator[psycopg2.extensions.connection, None, None]:
        """Context manager for database connections

        Yields:
            Database connection

        Raises:
            ConnectionError: If connection fails
        """
        try:
            conn = psycopg2.connect(**self.connect_params)
        except psycopg2.Error as e:
            error_msg = f"Database connection error: {str(e)}"
            self.logger.error(error_msg)
            raise ConnectionError(error_msg, {"host": self.config.get('host'),
                                              "database": self.config.get('database')}) from e
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute_query(self, query: str, params: Params = None) -> List[Tuple]:
        """Execute a query and return results

        Args:
            query: SQL query
            params: Query parameters

        Returns:
            List of result tuples

        Raises:
            QueryError: If query execution fails
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cursor:
                    cursor.execute(query, params or ())
                    if cursor.description:
                        return cursor.fetchall()
                    return []
        except psycopg2.Error as e:
            raise self._query_error("Query execution error", e, query, params) from e

    def execute_dict_query(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Execute a query and return results as dictionaries

        Args:
            query: SQL query
            params: Query parameters

        Returns:
            List of result dictionaries

        Raises:
            QueryError: If query execution fails
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                    cursor.execute(query, params or ())
                    if cursor.description:
                        return [dict(row) for row in cursor.fetchall()]
                    return []
        except psycopg2.Error as e:
            raise self._query_error("Query execution error", e, query, params) from e

    def execute_scalar(self, query: str, params: Params = None, default: Any = None) -> Any:
        """Execute a query and return the first column of the first row

        Args:
            query: SQL query
            params: Query parameters
            default: Value returned when the query yields no rows

        Returns:
            Scalar value or default
        """
        rows = self.execute_query(query, params)
        if not rows or rows[0][0] is None:
            return default
        return rows[0][0]

    def execute_transaction(self, callback: Callable[[psycopg2.extensions.cursor], T]) -> T:
        """Execute operations in a single transaction

        The callback receives a RealDictCursor; everything it does is committed
        together or rolled back together.

        Args:
            callback: Function that takes a cursor and performs operations

        Returns:
            Result of the callback function

        Raises:
            DatabaseError: If transaction fails
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                    return callback(cursor)
        except psycopg2.Error as e:
            error_msg = f"Transaction error: {str(e)}"
            self.logger.error(error_msg)
            raise DatabaseError(error_msg, {"code": getattr(e, 'pgcode', None)}) from e

    def test_connection(self) -> bool:
        """Check that the database is reachable

        Returns:
            True if a trivial query succeeds
        """
        try:
            self.execute_query("SELECT 1")
            self.logger.info("Database connection successful")
            return True
        except DatabaseError as e:
            self.logger.error(f"Database connection test failed: {e.message}")
            return False

    def schema_exists(self) -> bool:
        """Check if the configured schema exists"""
        query = """
        SELECT EXISTS (
            SELECT FROM information_schema.schemata
            WHERE schema_name = %s
        )
        """
        return bool(self.execute_scalar(query, (self.schema,), default=False))

    def _query_error(self, prefix: str, error: psycopg2.Error,
                     query: str, params: Params) -> QueryError:
        error_msg = f"{prefix}: {str(error)}"
        self.logger.error(f"{error_msg}\nQuery: {query}\nParams: {params}")
        return QueryError(error_msg, {"query": query, "params": params,
                                      "code": getattr(error, 'pgcode', None)})
