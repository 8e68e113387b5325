"""
Cassandra Connection for Sessions, Destination Cache, Metrics & Notifications
"""
from cassandra import ConsistencyLevel
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, ExecutionProfile, EXEC_PROFILE_DEFAULT, Session
from cassandra.metadata import protect_name
from cassandra.policies import DCAwareRoundRobinPolicy
from cassandra.query import dict_factory
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
import asyncio
import logging
import uuid

from tourbook.config import Settings
from tourbook.utils.datastore import Datastore, ignore_already_exists

logger = logging.getLogger(__name__)

TABLES = {
    "user_sessions": """
        CREATE TABLE IF NOT EXISTS user_sessions (
            session_id TEXT PRIMARY KEY,
            user_id TEXT,
            ip_address TEXT,
            user_agent TEXT,
            created_at TIMESTAMP,
            last_activity TIMESTAMP,
            is_active BOOLEAN,
            session_data MAP<TEXT, TEXT>
        )
    """,
    # Full destination row so cache hits and database reads render identically;
    # timestamps kept as ISO text because Cassandra truncates to milliseconds
    "destinations_cache": """
        CREATE TABLE IF NOT EXISTS destinations_cache (
            destination_id TEXT PRIMARY KEY,
            name TEXT,
            location TEXT,
            description TEXT,
            price DECIMAL,
            duration_days INT,
            includes LIST<TEXT>,
            image_url TEXT,
            created_at TEXT,
            updated_at TEXT,
            cached_at TIMESTAMP,
            ttl INT
        )
    """,
    "realtime_metrics": """
        CREATE TABLE IF NOT EXISTS realtime_metrics (
            metric_type TEXT,
            timestamp TIMESTAMP,
            metric_id UUID,
            metric_name TEXT,
            metric_value DOUBLE,
            tags MAP<TEXT, TEXT>,
            PRIMARY KEY ((metric_type), timestamp, metric_id)
        ) WITH CLUSTERING ORDER BY (timestamp DESC, metric_id ASC)
    """,
    "notifications": """
        CREATE TABLE IF NOT EXISTS notifications (
            user_id TEXT,
            created_at TIMESTAMP,
            notification_id UUID,
            notification_type TEXT,
            title TEXT,
            message TEXT,
            is_read BOOLEAN,
            expires_at TIMESTAMP,
            PRIMARY KEY ((user_id), created_at, notification_id)
        ) WITH CLUSTERING ORDER BY (created_at DESC, notification_id ASC)
    """,
}


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CassandraStore(Datastore):
    """Wide-column store for ephemeral, TTL-oriented records"""

    name = "cassandra"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.cluster: Optional[Cluster] = None
        self.session: Optional[Session] = None

    @property
    def is_connected(self) -> bool:
        return self.session is not None

    def _open_cluster(self):
        auth_provider = None
        if self.settings.CASSANDRA_USER and self.settings.CASSANDRA_PASSWORD:
            auth_provider = PlainTextAuthProvider(
                username=self.settings.CASSANDRA_USER,
                password=self.settings.CASSANDRA_PASSWORD,
            )
        profile = ExecutionProfile(
            load_balancing_policy=DCAwareRoundRobinPolicy(local_dc=self.settings.CASSANDRA_DATACENTER),
            consistency_level=ConsistencyLevel.LOCAL_QUORUM,
            row_factory=dict_factory,
            request_timeout=60,
        )
        cluster = Cluster(
            contact_points=self.settings.CASSANDRA_CONTACT_POINTS,
            port=self.settings.CASSANDRA_CONNECT_PORT,
            auth_provider=auth_provider,
            execution_profiles={EXEC_PROFILE_DEFAULT: profile},
            connect_timeout=self.settings.CASSANDRA_CONNECT_TIMEOUT,
        )
        try:
            # No keyspace yet: it may not exist
            return cluster, cluster.connect()
        except Exception:
            cluster.shutdown()
            raise

    @staticmethod
    def _execute_sync(session: Session, query: str, params: Optional[Sequence[Any]]) -> List[Dict[str, Any]]:
        return list(session.execute(query, params))

    async def _execute(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        self._require()
        return await asyncio.to_thread(self._execute_sync, self.session, query, params)

    async def connect(self) -> None:
        """Connect, create the keyspace if missing, then switch to it"""
        logger.info("Initializing Cassandra connection...")
        keyspace = self.settings.CASSANDRA_KEYSPACE
        if not keyspace:
            raise ValueError("CASSANDRA_KEYSPACE must be configured")

        cluster, session = await asyncio.to_thread(self._open_cluster)
        try:
            with ignore_already_exists(f"Cassandra keyspace {keyspace}"):
                await asyncio.to_thread(
                    self._execute_sync,
                    session,
                    f"CREATE KEYSPACE IF NOT EXISTS {protect_name(keyspace)} "
                    "WITH REPLICATION = {'class': 'SimpleStrategy', 'replication_factor': 1}",
                    None,
                )
            await asyncio.to_thread(session.set_keyspace, keyspace)
        except Exception:
            await asyncio.to_thread(cluster.shutdown)
            raise

        self.cluster = cluster
        self.session = session
        logger.info(f"Cassandra connection established (keyspace {keyspace})")

    async def ensure_schema(self) -> None:
        self._require()
        for table, ddl in TABLES.items():
            with ignore_already_exists(f"Cassandra table {table}"):
                await self._execute(ddl)
        logger.info("Cassandra tables ready")

    async def seed_if_empty(self) -> int:
        # Sessions, cache, metrics and notifications all start empty
        return 0

    async def ping(self) -> Dict[str, Any]:
        rows = await self._execute("SELECT release_version FROM system.local")
        return {
            "keyspace": self.settings.CASSANDRA_KEYSPACE,
            "release_version": rows[0]["release_version"] if rows else None,
        }

    async def close(self) -> None:
        if self.cluster is not None:
            logger.info("Closing Cassandra connection...")
            await asyncio.to_thread(self.cluster.shutdown)
            self.cluster = None
            self.session = None
            logger.info("Cassandra connection closed")

    # User sessions

    async def create_session(
        self,
        session_id: str,
        user_id: str,
        ip_address: Optional[str],
        user_agent: Optional[str],
        session_data: Optional[Dict[str, str]] = None,
    ) -> None:
        now = _utcnow()
        await self._execute(
            """
            INSERT INTO user_sessions (session_id, user_id, ip_address, user_agent, created_at, last_activity, is_active, session_data)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (session_id, user_id, ip_address, user_agent, now, now, True, session_data or {}),
        )

    async def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._execute("SELECT * FROM user_sessions WHERE session_id = %s", (session_id,))
        return rows[0] if rows else None

    async def deactivate_session(self, session_id: str) -> bool:
        """Flag a session inactive; sessions are never deleted"""
        if await self.get_session(session_id) is None:
            return False
        await self._execute(
            "UPDATE user_sessions SET is_active = false, last_activity = %s WHERE session_id = %s",
            (_utcnow(), session_id),
        )
        return True

    async def count_active_sessions(self) -> int:
        rows = await self._execute(
            "SELECT COUNT(*) AS session_count FROM user_sessions WHERE is_active = true ALLOW FILTERING"
        )
        return int(rows[0]["session_count"]) if rows else 0

    async def system_health(self) -> Dict[str, Any]:
        return {
            "active_sessions": await self.count_active_sessions(),
            "status": "healthy",
            "timestamp": _utcnow(),
        }

    # Destination cache

    async def cache_destination(self, destination: Dict[str, Any], ttl: int) -> None:
        """Store a full destination row; Cassandra expires it after ttl seconds"""
        await self._execute(
            """
            INSERT INTO destinations_cache (destination_id, name, location, description, price, duration_days,
                                            includes, image_url, created_at, updated_at, cached_at, ttl)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            USING TTL %s
            """,
            (
                str(destination["id"]),
                destination["name"],
                destination["location"],
                destination.get("description"),
                Decimal(str(destination["price"])),
                destination["duration_days"],
                list(destination.get("includes") or []),
                destination.get("image_url"),
                _iso(destination.get("created_at")),
                _iso(destination.get("updated_at")),
                _utcnow(),
                ttl,
                ttl,
            ),
        )

    async def get_cached_destination(self, destination_id: int) -> Optional[Dict[str, Any]]:
        rows = await self._execute(
            "SELECT * FROM destinations_cache WHERE destination_id = %s", (str(destination_id),)
        )
        if not rows:
            return None
        row = rows[0]
        return {
            "id": int(row["destination_id"]),
            "name": row["name"],
            "location": row["location"],
            "description": row["description"],
            "price": row["price"],
            "duration_days": row["duration_days"],
            "includes": list(row["includes"] or []),
            "image_url": row["image_url"],
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }

    # Realtime metrics

    async def record_metric(
        self,
        metric_type: str,
        metric_name: str,
        metric_value: float,
        tags: Optional[Dict[str, str]] = None,
    ) -> None:
        await self._execute(
            """
            INSERT INTO realtime_metrics (metric_type, timestamp, metric_id, metric_name, metric_value, tags)
            VALUES (%s, %s, %s, %s, %s, %s)
            """,
            (metric_type, _utcnow(), uuid.uuid4(), metric_name, float(metric_value),
             {k: str(v) for k, v in (tags or {}).items()}),
        )

    async def get_metrics_by_type(self, metric_type: str, limit: int = 100) -> List[Dict[str, Any]]:
        return await self._execute(
            "SELECT * FROM realtime_metrics WHERE metric_type = %s LIMIT %s", (metric_type, limit)
        )

    # Notifications

    async def create_notification(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        expires_at: datetime,
    ) -> None:
        now = _utcnow()
        ttl = max(int((expires_at - now).total_seconds()), 1)
        await self._execute(
            """
            INSERT INTO notifications (user_id, created_at, notification_id, notification_type, title, message, is_read, expires_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            USING TTL %s
            """,
            (user_id, now, uuid.uuid4(), notification_type, title, message, False, expires_at, ttl),
        )

    async def get_user_notifications(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        return await self._execute(
            "SELECT * FROM notifications WHERE user_id = %s LIMIT %s", (user_id, limit)
        )
