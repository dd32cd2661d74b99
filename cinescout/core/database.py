import os
import traceback

from cinescout.core.logger import logger
from cinescout.core.models import database, settings

DATABASE_VERSION = "1.0"


async def create_tables(db):
    await db.execute(
        """
            CREATE TABLE IF NOT EXISTS unified_entities (
                catalog_key TEXT PRIMARY KEY,
                external_id INTEGER,
                kind TEXT,
                title TEXT,
                year TEXT,
                language_type TEXT,
                confidence_score INTEGER,
                download_count INTEGER,
                payload TEXT,
                last_updated REAL
            )
        """
    )

    await db.execute(
        """
            CREATE TABLE IF NOT EXISTS listings (
                canonical_url TEXT PRIMARY KEY,
                provider_id TEXT,
                title TEXT,
                catalog_key TEXT,
                payload TEXT,
                timestamp REAL
            )
        """
    )

    await db.execute(
        """
            CREATE INDEX IF NOT EXISTS idx_unified_entities_language_type
            ON unified_entities (language_type)
        """
    )

    await db.execute(
        """
            CREATE INDEX IF NOT EXISTS idx_listings_catalog_key
            ON listings (catalog_key)
        """
    )


async def setup_database():
    try:
        if settings.DATABASE_TYPE == "sqlite":
            os.makedirs(os.path.dirname(settings.DATABASE_PATH) or ".", exist_ok=True)

            if not os.path.exists(settings.DATABASE_PATH):
                open(settings.DATABASE_PATH, "a").close()

        await database.connect()

        await database.execute(
            """
                CREATE TABLE IF NOT EXISTS db_version (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    version TEXT
                )
            """
        )

        current_version = await database.fetch_val(
            """
                SELECT version FROM db_version WHERE id = 1
            """
        )

        if current_version != DATABASE_VERSION:
            logger.log(
                "DATABASE",
                f"Migration from {current_version} to {DATABASE_VERSION} version",
            )

            for table in ("unified_entities", "listings"):
                await database.execute(f"DROP TABLE IF EXISTS {table}")

            await database.execute(
                """
                    INSERT INTO db_version VALUES (1, :version)
                    ON CONFLICT (id) DO UPDATE SET version = :version
                """,
                {"version": DATABASE_VERSION},
            )

            logger.log("DATABASE", f"Migration to version {DATABASE_VERSION} completed")

        await create_tables(database)

        if settings.DATABASE_TYPE == "sqlite":
            await database.execute("PRAGMA busy_timeout=30000")  # 30 seconds timeout
            await database.execute("PRAGMA journal_mode=WAL")
            await database.execute("PRAGMA synchronous=NORMAL")

    except Exception as e:
        logger.error(f"Error setting up the database: {e}")
        logger.exception(traceback.format_exc())


async def teardown_database():
    try:
        await database.disconnect()
    except Exception as e:
        logger.error(f"Error tearing down the database: {e}")
        logger.exception(traceback.format_exc())
