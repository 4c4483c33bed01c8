"""
Database initialization script.
"""
import logging
from tripmatrix.db.session import init_db

# Import all models so SQLAlchemy can register them
from tripmatrix.models import Trip, TripParticipant, Expense  # noqa: F401

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully!")
