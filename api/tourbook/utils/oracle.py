"""
Oracle Connection Pool for Back-Office Data (employees, finances, inventory)
"""
import oracledb
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
import logging

from tourbook.config import Settings
from tourbook.utils.datastore import Datastore, ignore_already_exists
from tourbook.utils.seed_data import SAMPLE_EMPLOYEES, SAMPLE_FINANCIAL_RECORDS, SAMPLE_INVENTORY

logger = logging.getLogger(__name__)

# Oracle has no CREATE TABLE IF NOT EXISTS before 23c; ORA-00955 is swallowed instead
TABLES = {
    "employees": """
        CREATE TABLE employees (
            id NUMBER GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            first_name VARCHAR2(100) NOT NULL,
            last_name VARCHAR2(100) NOT NULL,
            email VARCHAR2(255) NOT NULL UNIQUE,
            phone VARCHAR2(50),
            position VARCHAR2(100),
            department VARCHAR2(100),
            salary NUMBER(10,2),
            hire_date DATE DEFAULT SYSDATE,
            status VARCHAR2(20) DEFAULT 'ACTIVE'
        )
    """,
    "financial_records": """
        CREATE TABLE financial_records (
            id NUMBER GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            transaction_type VARCHAR2(20) NOT NULL CHECK (transaction_type IN ('INCOME', 'EXPENSE')),
            amount NUMBER(12,2) NOT NULL,
            description VARCHAR2(500),
            category VARCHAR2(100),
            reservation_id NUMBER,
            transaction_date TIMESTAMP DEFAULT SYSTIMESTAMP
        )
    """,
    "inventory": """
        CREATE TABLE inventory (
            id NUMBER GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            item_name VARCHAR2(255) NOT NULL,
            item_type VARCHAR2(50),
            quantity NUMBER DEFAULT 0,
            unit_cost NUMBER(12,2),
            supplier VARCHAR2(255),
            status VARCHAR2(20) DEFAULT 'AVAILABLE',
            last_updated TIMESTAMP DEFAULT SYSTIMESTAMP
        )
    """,
    "corporate_clients": """
        CREATE TABLE corporate_clients (
            id NUMBER GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            company_name VARCHAR2(255) NOT NULL,
            contact_name VARCHAR2(255),
            email VARCHAR2(255),
            phone VARCHAR2(50),
            contract_start DATE,
            contract_end DATE,
            discount_rate NUMBER(5,2) DEFAULT 0,
            created_at TIMESTAMP DEFAULT SYSTIMESTAMP
        )
    """,
}

SEED_STATEMENTS = {
    "employees": (
        """
        INSERT INTO employees (first_name, last_name, email, phone, position, department, salary)
        VALUES (:first_name, :last_name, :email, :phone, :position, :department, :salary)
        """,
        SAMPLE_EMPLOYEES,
    ),
    "financial_records": (
        """
        INSERT INTO financial_records (transaction_type, amount, description, category)
        VALUES (:transaction_type, :amount, :description, :category)
        """,
        SAMPLE_FINANCIAL_RECORDS,
    ),
    "inventory": (
        """
        INSERT INTO inventory (item_name, item_type, quantity, unit_cost, supplier, status)
        VALUES (:item_name, :item_type, :quantity, :unit_cost, :supplier, :status)
        """,
        SAMPLE_INVENTORY,
    ),
}


class OracleStore(Datastore):
    """Async connection pool over the corporate Oracle schema"""

    name = "oracle"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.pool: Optional[oracledb.AsyncConnectionPool] = None

    @property
    def is_connected(self) -> bool:
        return self.pool is not None

    async def connect(self) -> None:
        """Create the pool and test a connection from it"""
        logger.info("Initializing Oracle connection pool...")
        if not self.settings.ORACLE_USER or not self.settings.ORACLE_PASSWORD:
            raise ValueError("ORACLE_USER and ORACLE_PASSWORD must be configured")

        pool = oracledb.create_pool_async(
            user=self.settings.ORACLE_USER,
            password=self.settings.ORACLE_PASSWORD,
            dsn=self.settings.ORACLE_DSN,
            min=self.settings.ORACLE_POOL_MIN,
            max=self.settings.ORACLE_POOL_MAX,
            increment=self.settings.ORACLE_POOL_INCREMENT,
        )
        try:
            async with pool.acquire() as connection:
                with connection.cursor() as cursor:
                    await cursor.execute("SELECT 1 FROM dual")
        except Exception:
            await pool.close(force=True)
            raise

        self.pool = pool
        logger.info(f"Oracle connection pool created ({self.settings.ORACLE_DSN})")

    async def _fetch(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Run a query and return rows as dicts keyed by lower-case column name"""
        self._require()
        async with self.pool.acquire() as connection:
            with connection.cursor() as cursor:
                await cursor.execute(sql, params or {})
                columns = [column[0].lower() for column in cursor.description]
                cursor.rowfactory = lambda *row: dict(zip(columns, row))
                return await cursor.fetchall()

    async def _execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> None:
        self._require()
        async with self.pool.acquire() as connection:
            with connection.cursor() as cursor:
                await cursor.execute(sql, params or {})
            await connection.commit()

    async def _execute_many(self, sql: str, rows: Sequence[Dict[str, Any]]) -> None:
        self._require()
        async with self.pool.acquire() as connection:
            with connection.cursor() as cursor:
                await cursor.executemany(sql, list(rows))
            await connection.commit()

    async def ensure_schema(self) -> None:
        """Create the corporate tables, skipping the ones that already exist"""
        self._require()
        for table, ddl in TABLES.items():
            with ignore_already_exists(f"Oracle table {table}"):
                await self._execute(ddl)
        logger.info("Oracle tables ready")

    async def _count(self, table: str) -> int:
        rows = await self._fetch(f"SELECT COUNT(*) AS total FROM {table}")
        return int(rows[0]["total"])

    async def seed_if_empty(self) -> int:
        """Insert sample employees, financial records and inventory into empty tables"""
        inserted = 0
        for table, (sql, rows) in SEED_STATEMENTS.items():
            if await self._count(table):
                logger.info(f"Oracle table {table} already has data")
                continue
            await self._execute_many(sql, rows)
            inserted += len(rows)
            logger.info(f"Inserted {len(rows)} sample rows into {table}")
        return inserted

    async def ping(self) -> Dict[str, Any]:
        await self._fetch("SELECT 1 AS ok FROM dual")
        return {"dsn": self.settings.ORACLE_DSN}

    async def close(self) -> None:
        if self.pool is not None:
            logger.info("Closing Oracle connection pool...")
            await self.pool.close(force=True)
            self.pool = None
            logger.info("Oracle connection pool closed")

    # Employees

    async def list_employees(self) -> List[Dict[str, Any]]:
        return await self._fetch(
            """
            SELECT id, first_name, last_name, email, phone, position, department, salary, hire_date, status
            FROM employees
            ORDER BY last_name, first_name
            """
        )

    async def count_employees(self) -> int:
        return await self._count("employees")

    # Finances

    async def record_transaction(
        self,
        transaction_type: str,
        amount: float,
        description: str,
        category: str,
        reservation_id: Optional[int] = None,
    ) -> None:
        await self._execute(
            """
            INSERT INTO financial_records (transaction_type, amount, description, category, reservation_id)
            VALUES (:transaction_type, :amount, :description, :category, :reservation_id)
            """,
            {
                "transaction_type": transaction_type,
                "amount": float(amount),
                "description": description[:500],
                "category": category,
                "reservation_id": reservation_id,
            },
        )

    async def get_financial_dashboard(self) -> Dict[str, Any]:
        breakdown = await self._fetch(
            """
            SELECT transaction_type, category, COUNT(*) AS transaction_count, SUM(amount) AS total_amount
            FROM financial_records
            GROUP BY transaction_type, category
            ORDER BY transaction_type, category
            """
        )
        recent = await self._fetch(
            """
            SELECT id, transaction_type, amount, description, category, reservation_id, transaction_date
            FROM financial_records
            ORDER BY transaction_date DESC
            FETCH FIRST 10 ROWS ONLY
            """
        )
        income = sum(float(row["total_amount"] or 0) for row in breakdown if row["transaction_type"] == "INCOME")
        expenses = sum(float(row["total_amount"] or 0) for row in breakdown if row["transaction_type"] == "EXPENSE")
        return {
            "total_income": income,
            "total_expenses": expenses,
            "net_balance": income - expenses,
            "breakdown": breakdown,
            "recent_transactions": recent,
        }

    async def get_financial_summary(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        return await self._fetch(
            """
            SELECT transaction_type, category, COUNT(*) AS transaction_count, SUM(amount) AS total_amount
            FROM financial_records
            WHERE transaction_date BETWEEN :start_date AND :end_date
            GROUP BY transaction_type, category
            ORDER BY transaction_type, category
            """,
            {"start_date": start, "end_date": end},
        )
