"""Async Cassandra database connection using cassandra-asyncio-driver.

The cassandra-asyncio-driver extends the standard cassandra-driver with a
``session.aexecute()`` coroutine. The connection is synchronous; queries are
awaited.
"""

from typing import TYPE_CHECKING, Any

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from rizhilu.auth.models import AUTH_TABLES_CQL
from rizhilu.comments.models import COMMENTS_TABLES_CQL
from rizhilu.posts.models import POSTS_TABLES_CQL


if TYPE_CHECKING:
    from rizhilu.config.settings import Settings


logger = structlog.get_logger(__name__)


class AsyncCassandraConnection:
    """Cluster and session lifecycle for one application instance.

    Created in the application lifespan from ``Settings`` and kept on
    ``app.state``; nothing about the connection lives at module level.
    """

    def __init__(self, settings: "Settings") -> None:
        self.settings = settings
        self._cluster: Any = None
        self._session: Any = None

    def connect(self):
        """Establish connection to the Cassandra cluster.

        Returns:
            Active Cassandra session with aexecute() support

        Raises:
            ConnectionError: If connection fails
        """
        if self._session is not None:
            return self._session

        settings = self.settings

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        self._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            self._session = self._cluster.connect()
            logger.info(
                "async_cassandra_connected",
                hosts=settings.cassandra_hosts,
                port=settings.cassandra_port,
                protocol_version=settings.cassandra_protocol_version,
            )
        except Exception as e:
            logger.error("async_cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        return self._session

    @property
    def session(self):
        """Active session, connecting if necessary."""
        return self.connect()

    def disconnect(self) -> None:
        """Close the session and the cluster."""
        if self._session is not None:
            self._session.shutdown()
            self._session = None
            logger.info("async_cassandra_session_closed")

        if self._cluster is not None:
            self._cluster.shutdown()
            self._cluster = None
            logger.info("async_cassandra_cluster_closed")

    def is_connected(self) -> bool:
        return self._session is not None and not self._session.is_shutdown


async def init_async_keyspace(session, keyspace: str, production: bool) -> None:
    """Create keyspace if not exists.

    Args:
        session: Active Cassandra session with aexecute()
        keyspace: Keyspace name
        production: Use NetworkTopologyStrategy with RF 3 instead of RF 1
    """
    if production:
        replication = "'class': 'NetworkTopologyStrategy', 'datacenter1': 3"
    else:
        replication = "'class': 'SimpleStrategy', 'replication_factor': 1"

    await session.aexecute(f"""
        CREATE KEYSPACE IF NOT EXISTS {keyspace}
        WITH replication = {{{replication}}}
        AND durable_writes = true
    """)
    logger.info("async_keyspace_created", keyspace=keyspace)


async def init_async_tables(session, keyspace: str) -> None:
    """Create user, post and comment tables."""
    for name, statements in (
        ("auth", AUTH_TABLES_CQL),
        ("posts", POSTS_TABLES_CQL),
        ("comments", COMMENTS_TABLES_CQL),
    ):
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("async_tables_created", group=name, keyspace=keyspace)


async def init_async_cassandra(connection: AsyncCassandraConnection):
    """Connect and create the keyspace and tables if they don't exist.

    Returns:
        Configured Cassandra session with aexecute() support
    """
    settings = connection.settings
    session = connection.connect()

    await init_async_keyspace(
        session, settings.cassandra_keyspace, production=settings.is_production
    )
    session.set_keyspace(settings.cassandra_keyspace)
    await init_async_tables(session, settings.cassandra_keyspace)

    logger.info("async_cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra(connection: AsyncCassandraConnection) -> None:
    """Shutdown async Cassandra connection."""
    connection.disconnect()
