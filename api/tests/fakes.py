"""
In-memory stand-ins for the MongoDB, Oracle and Cassandra stores.

Each mirrors the public methods of the real store so routers and services
run unchanged; state is kept in plain lists and dicts for assertions.
"""
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
import asyncio
import uuid

from tourbook.utils.datastore import Datastore
from tourbook.utils.seed_data import DEFAULT_SITE_CONFIG, SAMPLE_EMPLOYEES, SAMPLE_FINANCIAL_RECORDS


def _now() -> datetime:
    return datetime.now(timezone.utc)


class FakeStore(Datastore):
    name = "fake"

    def __init__(self):
        self.connected = False
        self.schema_calls = 0

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def connect(self) -> None:
        self.connected = True

    async def ensure_schema(self) -> None:
        self._require()
        self.schema_calls += 1

    async def seed_if_empty(self) -> int:
        return 0

    async def ping(self) -> Dict[str, Any]:
        self._require()
        return {"fake": True}

    async def close(self) -> None:
        self.connected = False


class UnreachableStore(FakeStore):
    """Refuses every connection attempt, optionally after a delay"""

    def __init__(self, name: str, delay: float = 0):
        super().__init__()
        self.name = name
        self.delay = delay

    async def connect(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        raise ConnectionRefusedError(f"{self.name}: connection refused")


class FakeMongoStore(FakeStore):
    name = "mongodb"

    def __init__(self):
        super().__init__()
        self.activity_logs: List[Dict[str, Any]] = []
        self.analytics: Dict[date, Dict[str, Any]] = {}
        self.site_config: Optional[Dict[str, Any]] = None
        self.reviews: List[Dict[str, Any]] = []
        self.gallery: List[Dict[str, Any]] = []

    async def seed_if_empty(self) -> int:
        self._require()
        if self.site_config is not None:
            return 0
        self.site_config = {"id": "site-config", **DEFAULT_SITE_CONFIG}
        return 1

    async def log_activity(self, entry: Dict[str, Any]) -> str:
        self._require()
        entry = {"metadata": {}, **entry}
        entry.setdefault("timestamp", _now())
        entry["id"] = str(len(self.activity_logs) + 1)
        self.activity_logs.append(entry)
        return entry["id"]

    async def list_activity_logs(self, action=None, resource=None, limit=50, skip=0):
        self._require()
        logs = [
            log for log in reversed(self.activity_logs)
            if (not action or log["action"] == action) and (not resource or log["resource"] == resource)
        ]
        return [dict(log) for log in logs[skip:skip + limit]], len(logs)

    async def record_daily_metrics(self, day: date, **increments: float) -> None:
        self._require()
        document = self.analytics.setdefault(
            day, {"id": day.isoformat(), "date": datetime.combine(day, time.min, tzinfo=timezone.utc)}
        )
        for key, value in increments.items():
            document[key] = document.get(key, 0) + value

    async def get_daily_analytics(self, day: date) -> Optional[Dict[str, Any]]:
        self._require()
        document = self.analytics.get(day)
        return dict(document) if document else None

    async def list_analytics(self, start=None, end=None, limit=30):
        self._require()
        documents = [
            dict(doc) for doc in sorted(self.analytics.values(), key=lambda doc: doc["date"], reverse=True)
            if (start is None or doc["date"] >= start) and (end is None or doc["date"] <= end)
        ]
        return documents[:limit], len(documents)

    async def get_site_config(self) -> Optional[Dict[str, Any]]:
        self._require()
        return dict(self.site_config) if self.site_config else None

    async def update_site_config(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        self._require()
        self.site_config = {**(self.site_config or {"id": "site-config"}), **updates}
        return dict(self.site_config)

    async def list_reviews(self, destination_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        self._require()
        reviews = [review for review in reversed(self.reviews) if review["destination_id"] == destination_id]
        return reviews[:limit]

    async def add_review(self, review: Dict[str, Any]) -> Dict[str, Any]:
        self._require()
        document = {
            "id": str(uuid.uuid4()),
            "is_verified": False,
            "helpful_votes": 0,
            "created_at": _now(),
            **review,
        }
        self.reviews.append(document)
        return dict(document)

    async def list_gallery(self, destination_id: str) -> List[Dict[str, Any]]:
        self._require()
        return [image for image in self.gallery if image["destination_id"] == destination_id]


class FakeOracleStore(FakeStore):
    name = "oracle"

    def __init__(self, fail_writes: bool = False):
        super().__init__()
        self.fail_writes = fail_writes
        self.employees: List[Dict[str, Any]] = []
        self.transactions: List[Dict[str, Any]] = []

    async def seed_if_empty(self) -> int:
        self._require()
        inserted = 0
        if not self.employees:
            self.employees = [
                {"id": index, **employee, "hire_date": _now(), "status": "ACTIVE"}
                for index, employee in enumerate(SAMPLE_EMPLOYEES, start=1)
            ]
            inserted += len(self.employees)
        if not self.transactions:
            for record in SAMPLE_FINANCIAL_RECORDS:
                self._append_transaction(**record)
            inserted += len(SAMPLE_FINANCIAL_RECORDS)
        return inserted

    def _append_transaction(self, transaction_type, amount, description, category, reservation_id=None):
        self.transactions.append({
            "id": len(self.transactions) + 1,
            "transaction_type": transaction_type,
            "amount": float(amount),
            "description": description,
            "category": category,
            "reservation_id": reservation_id,
            "transaction_date": _now(),
        })

    async def list_employees(self) -> List[Dict[str, Any]]:
        self._require()
        return sorted(self.employees, key=lambda e: (e["last_name"], e["first_name"]))

    async def count_employees(self) -> int:
        self._require()
        return len(self.employees)

    async def record_transaction(self, transaction_type, amount, description, category, reservation_id=None):
        self._require()
        if self.fail_writes:
            raise RuntimeError("ORA-03113: end-of-file on communication channel")
        self._append_transaction(transaction_type, amount, description, category, reservation_id)

    def _breakdown(self, transactions):
        groups: Dict[tuple, Dict[str, Any]] = {}
        for tx in transactions:
            key = (tx["transaction_type"], tx["category"])
            group = groups.setdefault(key, {
                "transaction_type": key[0], "category": key[1], "transaction_count": 0, "total_amount": 0.0,
            })
            group["transaction_count"] += 1
            group["total_amount"] += tx["amount"]
        return [groups[key] for key in sorted(groups)]

    async def get_financial_dashboard(self) -> Dict[str, Any]:
        self._require()
        breakdown = self._breakdown(self.transactions)
        income = sum(row["total_amount"] for row in breakdown if row["transaction_type"] == "INCOME")
        expenses = sum(row["total_amount"] for row in breakdown if row["transaction_type"] == "EXPENSE")
        return {
            "total_income": income,
            "total_expenses": expenses,
            "net_balance": income - expenses,
            "breakdown": breakdown,
            "recent_transactions": list(reversed(self.transactions))[:10],
        }

    async def get_financial_summary(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        self._require()
        return self._breakdown([tx for tx in self.transactions if start <= tx["transaction_date"] <= end])


class FakeCassandraStore(FakeStore):
    name = "cassandra"

    def __init__(self, fail_reads: bool = False):
        super().__init__()
        self.fail_reads = fail_reads
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.cache: Dict[str, Dict[str, Any]] = {}
        self.cache_writes = 0
        self.metrics: List[Dict[str, Any]] = []
        self.notifications: List[Dict[str, Any]] = []

    async def create_session(self, session_id, user_id, ip_address, user_agent, session_data=None):
        self._require()
        self.sessions[session_id] = {
            "session_id": session_id,
            "user_id": user_id,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "created_at": _now(),
            "last_activity": _now(),
            "is_active": True,
            "session_data": session_data or {},
        }

    async def get_session(self, session_id):
        self._require()
        return self.sessions.get(session_id)

    async def deactivate_session(self, session_id) -> bool:
        self._require()
        session = self.sessions.get(session_id)
        if session is None:
            return False
        session.update(is_active=False, last_activity=_now())
        return True

    async def count_active_sessions(self) -> int:
        self._require()
        return sum(1 for session in self.sessions.values() if session["is_active"])

    async def system_health(self) -> Dict[str, Any]:
        return {"active_sessions": await self.count_active_sessions(), "status": "healthy", "timestamp": _now()}

    async def cache_destination(self, destination: Dict[str, Any], ttl: int) -> None:
        self._require()
        self.cache_writes += 1
        self.cache[str(destination["id"])] = {
            **destination,
            "price": Decimal(str(destination["price"])),
            "includes": list(destination.get("includes") or []),
            "created_at": destination["created_at"].isoformat() if destination.get("created_at") else None,
            "updated_at": destination["updated_at"].isoformat() if destination.get("updated_at") else None,
            "ttl": ttl,
        }

    async def get_cached_destination(self, destination_id: int) -> Optional[Dict[str, Any]]:
        self._require()
        if self.fail_reads:
            raise RuntimeError("Cassandra read timeout")
        entry = self.cache.get(str(destination_id))
        if entry is None:
            return None
        return {key: value for key, value in entry.items() if key != "ttl"}

    async def record_metric(self, metric_type, metric_name, metric_value, tags=None):
        self._require()
        self.metrics.append({
            "metric_type": metric_type,
            "timestamp": _now(),
            "metric_id": uuid.uuid4(),
            "metric_name": metric_name,
            "metric_value": float(metric_value),
            "tags": {k: str(v) for k, v in (tags or {}).items()},
        })

    async def get_metrics_by_type(self, metric_type, limit=100):
        self._require()
        return [m for m in reversed(self.metrics) if m["metric_type"] == metric_type][:limit]

    async def create_notification(self, user_id, notification_type, title, message, expires_at):
        self._require()
        self.notifications.append({
            "user_id": user_id,
            "created_at": _now(),
            "notification_id": uuid.uuid4(),
            "notification_type": notification_type,
            "title": title,
            "message": message,
            "is_read": False,
            "expires_at": expires_at,
        })

    async def get_user_notifications(self, user_id, limit=50):
        self._require()
        return [n for n in reversed(self.notifications) if n["user_id"] == user_id][:limit]
