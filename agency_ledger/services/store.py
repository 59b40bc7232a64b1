"""
Ledger Store
Repository over the relational store, injected into the ledger services
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func

from agency_ledger.models import Booking, Program, ProgramPricing
from agency_ledger.services.unit_of_work import UnitOfWork


class LedgerStore:
    """Data access for programs, pricing configurations and bookings"""
    
    def __init__(self, session):
        """
        Args:
            session: SQLAlchemy session (db.session inside the Flask app)
        """
        self.session = session
    
    def unit_of_work(self, name=None) -> UnitOfWork:
        return UnitOfWork(self.session, name)
    
    # ===== Programs =====
    
    def get_program(self, account_id, program_id, for_update=False) -> Optional[Program]:
        query = self.session.query(Program).filter_by(id=program_id, account_id=account_id)
        if for_update:
            # Serialises concurrent counter updates on the same program
            query = query.with_for_update().populate_existing()
        return query.first()
    
    def lock_programs(self, account_id, program_ids: Iterable[str]) -> Dict[str, Optional[Program]]:
        """
        Row-lock several programs, always in id order, before any booking
        row referencing them is written. Missing programs map to None.
        """
        return {
            program_id: self.get_program(account_id, program_id, for_update=True)
            for program_id in sorted(set(program_ids))
        }

    def adjust_booking_counter(self, account_id, program_id, delta: int) -> Optional[Program]:
        """Add delta to the program's booking counter, never going below zero"""
        program = self.get_program(account_id, program_id, for_update=True)
        if program is not None:
            program.total_bookings = max((program.total_bookings or 0) + delta, 0)
        return program
    
    # ===== Pricing =====
    
    def get_pricing(self, account_id, program_id) -> Optional[ProgramPricing]:
        return self.session.query(ProgramPricing).filter_by(
            program_id=program_id, account_id=account_id
        ).first()
    
    # ===== Bookings =====
    
    def get_booking(self, account_id, booking_id) -> Optional[Booking]:
        return self.session.query(Booking).filter_by(id=booking_id, account_id=account_id).first()
    
    def find_booking_by_passport(self, account_id, program_id, passport_number, exclude_id=None) -> Optional[Booking]:
        query = self.session.query(Booking).filter_by(
            account_id=account_id,
            program_id=program_id,
            passport_number=passport_number
        )
        if exclude_id is not None:
            query = query.filter(Booking.id != exclude_id)
        return query.first()
    
    def bookings_for_program(self, account_id, program_id) -> List[Booking]:
        return self.session.query(Booking).filter_by(
            account_id=account_id, program_id=program_id
        ).order_by(Booking.created_at.asc()).all()
    
    def bookings_by_ids(self, account_id, booking_ids: Iterable[str]) -> List[Booking]:
        ids = list(booking_ids)
        if not ids:
            return []
        return self.session.query(Booking).filter(
            Booking.account_id == account_id,
            Booking.id.in_(ids)
        ).all()
    
    def program_totals(self, account_id, program_id):
        """(count, selling total, cost total, profit total, remaining total)"""
        return self.session.query(
            func.count(Booking.id),
            func.coalesce(func.sum(Booking.selling_price), 0),
            func.coalesce(func.sum(Booking.base_price), 0),
            func.coalesce(func.sum(Booking.profit), 0),
            func.coalesce(func.sum(Booking.remaining_balance), 0),
        ).filter(
            Booking.account_id == account_id,
            Booking.program_id == program_id
        ).one()
    
    # ===== Writes =====
    
    def add(self, instance):
        self.session.add(instance)
        return instance
    
    def delete(self, instance):
        self.session.delete(instance)
    
    def flush(self):
        self.session.flush()
