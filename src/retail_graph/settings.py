"""Application settings via Pydantic BaseSettings.

All configuration uses the RG_ environment variable prefix.
Centralized here to prevent hardcoded magic numbers across the codebase.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Neo4jSettings(BaseSettings):
    """Neo4j connection settings."""

    model_config = {"env_prefix": "RG_NEO4J_"}

    uri: str = "bolt://localhost:7687"
    username: str = "neo4j"
    password: str = "retail-dev-password"
    database: str = "neo4j"

    # Bounded connection pool shared by all requests
    max_connection_pool_size: int = 50
    connection_acquisition_timeout_s: float = 10.0

    # Server-side statement timeout; a stuck call fails instead of stalling
    query_timeout_s: float = 15.0


class QuerySettings(BaseSettings):
    """Query catalog bounds."""

    model_config = {"env_prefix": "RG_QUERY_"}

    # Candidate transactions scanned for product recommendations
    recommendation_scan_limit: int = Field(default=5, ge=1)


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "RG_"}

    app_name: str = "retail-graph"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    neo4j: Neo4jSettings = Field(default_factory=Neo4jSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)
