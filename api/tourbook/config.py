"""
Application Configuration - Environment Variables & Settings
"""
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Application
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)

    # Database - PostgreSQL (destinations, reservations, users)
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    POSTGRES_DB: str = Field(default="chimbote_travel")
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="")
    DATABASE_URL: Optional[str] = Field(default=None)
    DB_POOL_SIZE: int = Field(default=20)
    DB_MAX_OVERFLOW: int = Field(default=10)
    DB_CONNECT_TIMEOUT: int = Field(default=2)  # seconds

    # Database - MongoDB (activity logs, analytics, site config)
    MONGODB_URI: str = Field(default="mongodb://localhost:27017/chimbote_travel")
    MONGODB_DATABASE: str = Field(default="chimbote_travel")
    MONGODB_MAX_POOL_SIZE: int = Field(default=10)
    MONGODB_TIMEOUT_MS: int = Field(default=5000)

    # Database - Oracle (employees, finances, inventory)
    ORACLE_USER: str = Field(default="")
    ORACLE_PASSWORD: str = Field(default="")
    ORACLE_HOST: str = Field(default="localhost")
    ORACLE_PORT: int = Field(default=1521)
    ORACLE_SERVICE_NAME: str = Field(default="XEPDB1")
    ORACLE_POOL_MIN: int = Field(default=1)
    ORACLE_POOL_MAX: int = Field(default=5)
    ORACLE_POOL_INCREMENT: int = Field(default=1)

    # Database - Cassandra (sessions, cache, metrics, notifications)
    CASSANDRA_HOSTS: str = Field(default="localhost")
    CASSANDRA_PORT: int = Field(default=9042)
    CASSANDRA_DATACENTER: str = Field(default="datacenter1")
    CASSANDRA_KEYSPACE: str = Field(default="chimbote_travel")
    CASSANDRA_USER: str = Field(default="")
    CASSANDRA_PASSWORD: str = Field(default="")
    CASSANDRA_CONNECT_TIMEOUT: int = Field(default=10)  # seconds

    # Cache
    CACHE_TTL_DESTINATIONS: int = Field(default=3600)  # 1 hour

    # Rate Limiting - Redis
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT_REQUESTS: int = Field(default=100)
    RATE_LIMIT_WINDOW: int = Field(default=900)  # 15 minutes

    # CORS - stored as comma-separated string
    ALLOWED_ORIGINS_STR: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="ALLOWED_ORIGINS"
    )

    @computed_field
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        """Parse comma-separated origins into list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS_STR.split(',') if origin.strip()]

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        """Full async PostgreSQL URL, unless DATABASE_URL overrides it"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @computed_field
    @property
    def ORACLE_DSN(self) -> str:
        """Easy Connect string: host:port/service"""
        return f"{self.ORACLE_HOST}:{self.ORACLE_PORT}/{self.ORACLE_SERVICE_NAME}"

    @computed_field
    @property
    def CASSANDRA_CONTACT_POINTS(self) -> List[str]:
        """Hosts may be given as "host" or "host:port"; only the host part is kept"""
        return [
            host.strip().split(':')[0]
            for host in self.CASSANDRA_HOSTS.split(',')
            if host.strip()
        ] or ["localhost"]

    @computed_field
    @property
    def CASSANDRA_CONNECT_PORT(self) -> int:
        """Port of the first "host:port" entry, falling back to CASSANDRA_PORT"""
        first = self.CASSANDRA_HOSTS.split(',')[0].strip()
        if ':' in first:
            port = first.split(':', 1)[1]
            if port.isdigit():
                return int(port)
        return self.CASSANDRA_PORT

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance
    """
    return Settings()


# Global settings instance
settings = get_settings()
