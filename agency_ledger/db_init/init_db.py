"""
Database Initialization Script
Creates tables and initializes the database with sample data for testing
"""
import logging

from agency_ledger.extensions import db

logger = logging.getLogger(__name__)


def clear_database():
    """Drop all tables and recreate them"""
    logger.info("Dropping all tables...")
    db.drop_all()
    logger.info("Creating tables...")
    db.create_all()


def load_sample_data(account_id='demo-account'):
    """
    Add the sample program, its bookings and its pricing for an account
    
    Returns:
        dict with the number of records created per type
    """
    from .sample_data import create_sample_program, create_sample_pricing, create_sample_bookings
    
    # Bookings first so the pricing write cascades into them
    program = create_sample_program(account_id)
    bookings = create_sample_bookings(account_id, program)
    pricing = create_sample_pricing(account_id, program)
    logger.info(f"Loaded sample program {program.id} for account {account_id}")
    
    return {
        'programs': 1,
        'pricing': 1 if pricing else 0,
        'bookings': len(bookings),
    }


def init_database(with_sample_data=True, account_id='demo-account'):
    """
    Initialize the database with tables and optionally sample data
    
    Args:
        with_sample_data (bool): Whether to populate with sample data
        account_id (str): Account owning the sample data
    
    Returns:
        dict with the number of records created per type
    """
    db.create_all()
    
    if not with_sample_data:
        return {}
    return load_sample_data(account_id)


def reset_database(account_id='demo-account'):
    """Drop everything and reload the sample data"""
    db.drop_all()
    return init_database(with_sample_data=True, account_id=account_id)
