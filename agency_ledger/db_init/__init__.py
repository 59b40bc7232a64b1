"""
Database Initialization Package
Provides CLI commands and utilities for initializing the ledger database with sample data
"""

from .init_db import init_database, clear_database, load_sample_data
from .sample_data import create_sample_program, create_sample_pricing, create_sample_bookings

__all__ = [
    'init_database',
    'clear_database',
    'load_sample_data',
    'create_sample_program',
    'create_sample_pricing',
    'create_sample_bookings',
]
