"""Cassandra connection lifecycle and schema bootstrap.

Sessions come from ``cassandra_asyncio.cluster.Cluster`` so services can
``await session.aexecute(...)``. Each domain package declares its tables as
CQL templates with a ``{keyspace}`` placeholder.
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from skillhub.auth.models import AUTH_TABLES_CQL
from skillhub.certificates.models import CERTIFICATES_TABLES_CQL
from skillhub.config.settings import get_settings
from skillhub.courses.models import COURSES_TABLES_CQL
from skillhub.enrollments.models import ENROLLMENTS_TABLES_CQL
from skillhub.progress.models import PROGRESS_TABLES_CQL


logger = structlog.get_logger(__name__)


SCHEMA: dict[str, list[str]] = {
    "auth": AUTH_TABLES_CQL,
    "courses": COURSES_TABLES_CQL,
    "enrollments": ENROLLMENTS_TABLES_CQL,
    "progress": PROGRESS_TABLES_CQL,
    "certificates": CERTIFICATES_TABLES_CQL,
}


class AsyncCassandraConnection:
    """Process-wide cluster and session holder."""

    _cluster: Cluster | None = None
    _session = None

    @classmethod
    def connect(cls):
        """Connect to the cluster, reusing an open session.

        Raises:
            ConnectionError: If no contact point answers.
        """
        if cls._session is not None:
            return cls._session

        settings = get_settings()
        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )
        try:
            cls._session = cls._cluster.connect()
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        cls._session.default_timeout = settings.cassandra_request_timeout
        logger.info(
            "cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
        )
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_disconnected")

    @classmethod
    def is_connected(cls) -> bool:
        return cls._session is not None and not cls._session.is_shutdown


def keyspace_cql(keyspace: str, production: bool) -> str:
    """CREATE KEYSPACE statement for the current environment."""
    if production:
        replication = "'class': 'NetworkTopologyStrategy', 'datacenter1': 3"
    else:
        replication = "'class': 'SimpleStrategy', 'replication_factor': 1"
    return (
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {{{replication}}} AND durable_writes = true"
    )


async def create_schema(session, keyspace: str) -> None:
    """Create every domain table in ``keyspace``."""
    for domain, statements in SCHEMA.items():
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("tables_created", domain=domain, keyspace=keyspace)


async def init_async_cassandra():
    """Connect, create the keyspace and tables, and return the session."""
    settings = get_settings()
    session = AsyncCassandraConnection.connect()

    await session.aexecute(
        keyspace_cql(settings.cassandra_keyspace, settings.is_production)
    )
    session.set_keyspace(settings.cassandra_keyspace)
    await create_schema(session, settings.cassandra_keyspace)

    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    AsyncCassandraConnection.disconnect()
