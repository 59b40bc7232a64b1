"""
Unit of Work

Wraps a multi-row mutation in one database transaction: commit when the
block exits cleanly, rollback on any exception (which is re-raised).
"""
import logging

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Usage:
        with store.unit_of_work():
            booking = store.get_booking(account_id, booking_id)
            store.delete(booking)
            store.adjust_booking_counter(account_id, booking.program_id, -1)
        # committed here, or rolled back if the block raised
    """

    def __init__(self, session, name=None):
        self.session = session
        self.name = name or 'unit of work'

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.rollback(exc_val)
            return False
        try:
            self.commit()
        except Exception as e:
            self.rollback(e)
            raise
        return False

    def commit(self):
        self.session.commit()
        logger.debug(f"Committed {self.name}")

    def rollback(self, reason=None):
        self.session.rollback()
        logger.warning(f"Rolled back {self.name}: {reason}")
