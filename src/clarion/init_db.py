"""Create the Clarion tables on the configured database."""

import logging

from clarion.db.session import create_tables, engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()
    logger.info("Database initialized at %s", engine.url.render_as_string(hide_password=True))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
