"""
Database Setup Script for the Adaptive Focus Recommender

Creates the necessary database tables for:
- Learned engine state (bandit model, zones, capacity)
- Focus session history
"""

import logging

from config.settings import get_settings, validate_settings
from services.session_store import SessionStore
from services.storage import SQLStateStore, create_db_engine
from utils import configure_logging

logger = logging.getLogger(__name__)


def create_tables(db_url: str):
    """Create all necessary tables."""
    try:
        engine = create_db_engine(db_url)
        SQLStateStore(engine)
        SessionStore(engine)
        logger.info(f"Tables created successfully at {engine.url.render_as_string(hide_password=True)}")
        return engine
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        raise


def main():
    """Main setup function."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_file)

    print("Adaptive Focus Recommender - Database Setup")
    print("=" * 50)

    try:
        validate_settings(settings)
        print("Creating tables...")
        create_tables(settings.database_url)

        print("\nDatabase setup completed successfully!")
        print(f"Database URL: {settings.database_url}")

    except Exception as e:
        print(f"Database setup failed: {e}")
        raise


if __name__ == "__main__":
    main()
