"""
PostgreSQL access for workflow documents and the audit trail.

When PGHOST is set, the workflow store and the audit log write to the
``workflows`` and ``audit_log`` tables created from db_schema.sql. Otherwise
both fall back to JSON files under ~/.flowbuilder/. The password comes from
PGPASSWORD or, on Databricks, from the workspace OAuth token, which is also
what the model serving adapters authenticate with.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "db_schema.sql"

_pool = None
_pg_available = None


def get_oauth_token() -> str | None:
    """Bearer token from the Databricks SDK auth chain, or None outside Databricks."""
    try:
        from databricks.sdk import WorkspaceClient

        headers = WorkspaceClient().config.authenticate()
    except Exception as e:
        logger.debug("No Databricks OAuth token available: %s", e)
        return None
    token = headers.get("Authorization", "").removeprefix("Bearer ")
    return token or None


def _conninfo() -> str:
    params = {
        "host": os.environ["PGHOST"],
        "user": os.environ.get("PGUSER", "postgres"),
        "dbname": os.environ.get("PGDATABASE", "postgres"),
        "port": os.environ.get("PGPORT", "5432"),
        "sslmode": os.environ.get("PGSSLMODE", "require"),
    }
    password = os.environ.get("PGPASSWORD") or get_oauth_token()
    if password:
        params["password"] = password
    return " ".join(f"{key}={value}" for key, value in params.items())


def get_pool():
    """Shared psycopg connection pool for the workflow and audit tables."""
    global _pool
    if _pool is None:
        if not os.environ.get("PGHOST"):
            raise RuntimeError("PGHOST is not set; workflows and audit entries use local files")
        import psycopg_pool

        logger.info(
            "Opening workflow database pool on %s/%s",
            os.environ["PGHOST"], os.environ.get("PGDATABASE", "postgres"),
        )
        _pool = psycopg_pool.ConnectionPool(_conninfo(), min_size=1, max_size=10, open=True)
    return _pool


def is_postgres_available() -> bool:
    """True when workflows and audit entries should go to PostgreSQL."""
    global _pg_available
    if _pg_available is None:
        _pg_available = bool(os.environ.get("PGHOST"))
    return _pg_available


def init_db() -> None:
    """
    Create the workflows and audit_log tables if they are missing.

    A connection failure switches the process to the local file stores.
    """
    global _pg_available
    if not is_postgres_available():
        logger.info("PGHOST not set, workflows and audit log use ~/.flowbuilder")
        return
    try:
        with get_pool().connection() as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_PATH.read_text())
    except Exception as e:
        logger.error("Workflow database unavailable (%s), using local file stores", e)
        _pg_available = False
        return
    logger.info("Workflow and audit tables ready")
