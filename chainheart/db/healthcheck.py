"""Database health check - create and verify the ledger schema."""

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from chainheart.db.models import Base
from chainheart.db.session import get_engine, get_session
from chainheart.log import get_logger

logger = get_logger(__name__)

# Required tables that must exist
REQUIRED_TABLES = [
    "donations",
    "transactions",
    "withdrawals",
    "charity_requests",
    "campaigns",
]


def create_schema() -> None:
    """Create any missing ledger tables."""
    logger.info("Creating database schema...")
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database schema ready")


def check_tables_exist() -> None:
    """Verify all required tables exist in the database.

    Raises:
        RuntimeError: If any required table is missing
    """
    logger.info("Checking database schema...")

    with get_session() as session:
        for table_name in REQUIRED_TABLES:
            try:
                session.execute(text(f"SELECT 1 FROM {table_name} LIMIT 1"))
                logger.debug(f"Table '{table_name}' exists")
            except (OperationalError, ProgrammingError) as e:
                error_msg = str(e).lower()
                if "does not exist" in error_msg or "no such table" in error_msg:
                    raise RuntimeError(
                        f"DB schema missing. Table '{table_name}' does not exist. "
                        "Run 'chainheart db init' first."
                    ) from e
                raise

    logger.info("All required tables exist")
