"""
Program Pricing Service
Writes pricing configurations and re-derives every dependent booking in the
same transaction.
"""

import logging
from typing import Dict, Optional

from agency_ledger.exceptions import NotFoundError
from agency_ledger.models import ProgramPricing
from agency_ledger.models.values import HotelRate, PersonTypeRate, parse_amount
from agency_ledger.services.pricing import CostCalculator
from agency_ledger.services.store import LedgerStore

logger = logging.getLogger(__name__)

FEE_FIELDS = ('ticket_airline', 'visa_fees', 'guide_fees', 'transport_fees')


class CascadeRecalculator:
    """Recompute base price, profit and balance for all bookings of a program"""
    
    def __init__(self, store: LedgerStore):
        self.store = store
    
    def recalculate(self, account_id, program, pricing: Optional[ProgramPricing]) -> int:
        """
        Must run inside the caller's unit of work so the pricing write and
        the booking updates commit together.
        
        Returns:
            Number of bookings recomputed
        """
        bookings = self.store.bookings_for_program(account_id, program.id)
        for booking in bookings:
            old_base = booking.base_price
            booking.apply_base_price(CostCalculator.compute_base_cost(
                program,
                pricing,
                booking.package_name,
                booking.selected_hotel,
                booking.person_type
            ))
            booking.refresh_balance()
            logger.debug(f"Booking {booking.id}: base price {old_base} -> {booking.base_price}")
        return len(bookings)


class PricingService:
    """Create, update and delete program pricing configurations"""
    
    def __init__(self, store: LedgerStore):
        self.store = store
        self.recalculator = CascadeRecalculator(store)
    
    def _get_program(self, account_id, program_id, for_update=False):
        program = self.store.get_program(account_id, program_id, for_update=for_update)
        if not program:
            raise NotFoundError("Program not found or you are not authorized to access it.")
        return program
    
    def get_pricing_configuration(self, account_id, program_id) -> Optional[ProgramPricing]:
        """Pricing of a program, or None when none is set up yet"""
        program = self._get_program(account_id, program_id)
        return self.store.get_pricing(account_id, program.id)
    
    def upsert_pricing_configuration(self, account_id, program_id, fields: Dict) -> ProgramPricing:
        """
        Create or replace the pricing of a program and recompute its bookings
        
        Args:
            account_id: Owning account
            program_id: Program being priced
            fields: ticket_airline, visa_fees, guide_fees, transport_fees,
                all_hotels, person_types, select_program
            
        Returns:
            The persisted ProgramPricing
            
        Raises:
            NotFoundError: Program does not exist for this account
            ValidationError: Malformed fees, hotel rates or person types
        """
        with self.store.unit_of_work('pricing write'):
            program = self._get_program(account_id, program_id, for_update=True)
            pricing = self.store.get_pricing(account_id, program.id)
            created = pricing is None
            if created:
                pricing = ProgramPricing(account_id=account_id, program_id=program.id)
            
            for key in FEE_FIELDS:
                setattr(pricing, key, parse_amount(fields.get(key), key))
            pricing.select_program = fields.get('select_program') or program.name
            pricing.all_hotels = [
                h if isinstance(h, HotelRate) else HotelRate.from_dict(h)
                for h in fields.get('all_hotels') or []
            ]
            pricing.person_types = [
                p if isinstance(p, PersonTypeRate) else PersonTypeRate.from_dict(p)
                for p in fields.get('person_types') or []
            ]
            self.store.add(pricing)
            
            count = self.recalculator.recalculate(account_id, program, pricing)
        
        logger.info(
            f"{'Created' if created else 'Updated'} pricing for program {program.id}, "
            f"recalculated {count} bookings"
        )
        return pricing
    
    def delete_pricing_configuration(self, account_id, program_id) -> None:
        """Remove a program's pricing; its bookings fall back to a zero cost basis"""
        with self.store.unit_of_work('pricing delete'):
            program = self._get_program(account_id, program_id, for_update=True)
            pricing = self.store.get_pricing(account_id, program.id)
            if not pricing:
                raise NotFoundError("Program pricing not found or not authorized.")
            self.store.delete(pricing)
            count = self.recalculator.recalculate(account_id, program, None)
        
        logger.info(f"Deleted pricing for program {program_id}, recalculated {count} bookings")
    
    def recalculate_program(self, account_id, program_id) -> int:
        """Re-derive every booking of a program against its current pricing"""
        with self.store.unit_of_work('program recalculation'):
            program = self._get_program(account_id, program_id, for_update=True)
            pricing = self.store.get_pricing(account_id, program.id)
            count = self.recalculator.recalculate(account_id, program, pricing)
        
        logger.info(f"Recalculated {count} bookings for program {program_id}")
        return count
