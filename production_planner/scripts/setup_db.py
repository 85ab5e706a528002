# production_planner/scripts/setup_db.py
import argparse

from production_planner.db import (
    db,
    get_db_type,
    create_all_tables,
    drop_all_tables,
    get_interface,
    session_scope
)
from production_planner.exceptions import PlannerError
from production_planner.services import CategoryService, DepartmentService
from production_planner.logging_setup import get_logger

logger = get_logger('db_setup')

def seed_labels(interface):
    """Create the default categories and departments that are missing.

    Returns:
        Number of labels created
    """
    created = 0
    for service_class in (CategoryService, DepartmentService):
        created += len(service_class(interface).seed_defaults())
    return created

def setup_database(drop_existing=False, connection_string=None):
    """Set up the database schema.

    Args:
        drop_existing: If True, drop existing tables before creating new ones
        connection_string: Optional SQLAlchemy URL overriding configuration

    Returns:
        True if setup was successful, False otherwise
    """
    try:
        db.initialize(connection_string)
        db_type = get_db_type()

        logger.info(f"Database type: {db_type}")

        if db_type == "sqlalchemy":
            if drop_existing:
                logger.info("Dropping all existing tables...")
                drop_all_tables()
                logger.info("All tables dropped successfully.")

            logger.info("Creating database tables...")
            create_all_tables()
            logger.info("Database tables created successfully.")

            with session_scope() as session:
                created = seed_labels(get_interface(session))
            logger.info(f"Seeded {created} default categories and departments.")
        else:  # Supabase
            logger.info("Using Supabase. Tables must be created via SQL migrations.")
            logger.info("Run the scripts in migrations/ in the Supabase SQL editor.")

        return True
    except PlannerError as e:
        logger.error(f"Error setting up database: {str(e)}")
        return False

def main():
    parser = argparse.ArgumentParser(description='Set up the Production Planner database')
    parser.add_argument('--drop', action='store_true', help='Drop existing tables first')
    parser.add_argument('--url', type=str, help='SQLAlchemy database URL')
    args = parser.parse_args()

    return 0 if setup_database(args.drop, args.url) else 1

if __name__ == "__main__":
    raise SystemExit(main())
