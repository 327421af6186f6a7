import logging

from alumnihive.db.session import engine
from alumnihive.db.base import Base

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create any missing tables. Used when RUN_MIGRATIONS is off."""
    import alumnihive.db.models  # noqa: F401  registers every table on Base.metadata

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")
