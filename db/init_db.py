"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.database import Database
from utils.logger import get_logger

logger = get_logger(__name__)

# {identity} is filled with the driver's auto-increment primary key definition.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS tbl_posts (
    id                  {identity},
    title               VARCHAR(255) NOT NULL,
    content             TEXT NOT NULL,
    image               VARCHAR(255),
    posts_categories_id INTEGER NOT NULL DEFAULT 1,
    created_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    modify_at           TIMESTAMP,
    is_archive          SMALLINT NOT NULL DEFAULT 0,
    status              SMALLINT NOT NULL DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_posts_created_at ON tbl_posts(created_at);
"""


def schema_statements(identity: str) -> list[str]:
    """Split the schema into single statements for the given identity column."""
    script = SCHEMA_SQL.format(identity=identity)
    return [stmt.strip() for stmt in script.split(";") if stmt.strip()]


def create_tables(db: Database) -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    for statement in schema_statements(db.handle.driver.identity_column):
        db.execute(statement)
    logger.info("Database schema initialized successfully.")


if __name__ == "__main__":
    from db.config import ConnectionConfig
    from db.driver import get_driver
    from db.manager import ConnectionManager
    import config

    manager = ConnectionManager(get_driver(config.DB_DRIVER))
    create_tables(manager.get_instance(ConnectionConfig.from_env()))
    manager.close_connection()
    print("✅ Database schema created successfully.")
