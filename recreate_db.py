"""
Script to recreate the category tables on the configured database
"""
import logging
from sqlalchemy import inspect
from app.config import settings
from app.database import Base, engine
from app.models import *  # noqa: F401,F403
from app.utils.logging_config import configure_logging

configure_logging(settings)
logger = logging.getLogger("recreate_db")


def recreate():
    logger.info(f"Dropping tables on {engine.url.render_as_string(hide_password=True)}")
    Base.metadata.drop_all(bind=engine)
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    tables = inspect(engine).get_table_names()
    logger.info(f"Created tables: {', '.join(tables)}")


if __name__ == "__main__":
    recreate()
