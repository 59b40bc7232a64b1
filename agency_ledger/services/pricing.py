from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
import logging

from agency_ledger.exceptions import NotFoundError
from agency_ledger.models.values import Selection

logger = logging.getLogger(__name__)


def _decimal(value) -> Decimal:
    return Decimal(str(value or 0))


class CostCalculator:
    """Calculate the cost basis (base price) of a booking"""
    
    # Person types without an entry in the pricing table pay the full ticket
    DEFAULT_TICKET_PERCENTAGE = Decimal('100')
    # Hotel names of a selection are joined with this to form the price key
    HOTEL_COMBINATION_SEPARATOR = '_'
    ZERO = Decimal('0')
    
    @staticmethod
    def ticket_ratio(pricing, person_type: Optional[str]) -> Decimal:
        """Share of the airline ticket charged for a person type (0..1)"""
        percentage = pricing.ticket_percentage_for(person_type)
        if percentage is None:
            percentage = CostCalculator.DEFAULT_TICKET_PERCENTAGE
        return _decimal(percentage) / 100
    
    @staticmethod
    def non_hotel_cost(pricing, person_type: Optional[str]) -> Decimal:
        """Ticket share plus visa, guide and transport fees"""
        ticket = _decimal(pricing.ticket_airline) * CostCalculator.ticket_ratio(pricing, person_type)
        return (
            ticket
            + _decimal(pricing.visa_fees)
            + _decimal(pricing.guide_fees)
            + _decimal(pricing.transport_fees)
        )
    
    @staticmethod
    def hotel_combination_key(selection: Selection) -> str:
        return CostCalculator.HOTEL_COMBINATION_SEPARATOR.join(selection.hotel_names)
    
    @staticmethod
    def hotel_cost(program, pricing, package_name: Optional[str], selection: Selection) -> Decimal:
        """
        Per-person hotel cost for the selected hotels.
        
        Each city contributes nightly price * nights / guests sharing the room.
        A city whose hotel rate, night count or room guest count cannot be
        found contributes nothing, as does a city with no nights or no
        guests, and a hotel combination with no price structure in the package.
        """
        package = program.find_package(package_name) if package_name else None
        if package is None or not selection.has_hotels():
            return CostCalculator.ZERO
        
        structure = package.price_structure_for(CostCalculator.hotel_combination_key(selection))
        if structure is None:
            return CostCalculator.ZERO
        
        total = CostCalculator.ZERO
        for city_name, hotel_name, room_type in selection.entries():
            hotel = pricing.find_hotel(hotel_name, city_name)
            city = program.find_city(city_name)
            guests = structure.guests_for(room_type) if room_type else None
            if hotel is None or city is None or guests is None or guests <= 0 or city.nights <= 0:
                continue
            nightly = hotel.price_per_night.get(room_type)
            if nightly is None:
                continue
            total += _decimal(nightly) * city.nights / guests
        return total
    
    @staticmethod
    def round_amount(amount: Decimal) -> int:
        """Round to the nearest whole currency unit, halves away from zero"""
        return int(amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    
    @staticmethod
    def compute_base_cost(
        program,
        pricing,
        package_name: Optional[str],
        selection: Optional[Selection],
        person_type: Optional[str]
    ) -> int:
        """
        Compute the cost basis of a booking
        
        Args:
            program: Program the booking belongs to
            pricing: ProgramPricing of that program, or None if not set up
            package_name: Chosen package name (may be None)
            selection: Selected cities / hotels / room types
            person_type: adult, child, infant, ...
            
        Returns:
            Integer cost basis. 0 when the program has no pricing.
            
        Raises:
            NotFoundError: If the program could not be resolved
        """
        if program is None:
            raise NotFoundError("Program not found for base price calculation.")
        if pricing is None:
            logger.debug(f"No pricing configured for program {program.id}, base price is 0")
            return 0
        
        selection = selection or Selection()
        cost = (
            CostCalculator.non_hotel_cost(pricing, person_type)
            + CostCalculator.hotel_cost(program, pricing, package_name, selection)
        )
        return CostCalculator.round_amount(cost)
