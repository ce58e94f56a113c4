"""Database connection module for SkillHub."""

from skillhub.core.database.async_cassandra import (
    AsyncCassandraConnection,
    create_schema,
    init_async_cassandra,
    shutdown_async_cassandra,
)


__all__ = [
    "AsyncCassandraConnection",
    "create_schema",
    "init_async_cassandra",
    "shutdown_async_cassandra",
]
