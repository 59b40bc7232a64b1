"""
Booking Ledger
Owns bookings and their advance payments, and keeps the derived financial
fields (base price, profit, remaining balance, paid-in-full flag) in step
with the program, its pricing configuration and the booking's selection.
"""

import logging
from collections import Counter
from decimal import Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy.exc import IntegrityError

from agency_ledger.exceptions import ConflictError, NotFoundError, ValidationError
from agency_ledger.models import Booking
from agency_ledger.models.enums import PersonType
from agency_ledger.models.values import PaymentEntry, Selection, parse_amount
from agency_ledger.services.pricing import CostCalculator
from agency_ledger.services.store import LedgerStore

logger = logging.getLogger(__name__)

CLIENT_FIELDS = ('client_name_ar', 'client_name_fr', 'phone_number', 'passport_number')


def normalize_passport(value) -> str:
    """Passports are compared trimmed and upper-cased"""
    return str(value or '').strip().upper()


def as_selection(value) -> Selection:
    if isinstance(value, Selection):
        return value
    return Selection.from_dict(value)


def as_payment(value) -> PaymentEntry:
    if isinstance(value, PaymentEntry):
        return value
    return PaymentEntry.from_dict(value)


class BookingLedger:
    """Create, update and delete bookings and their payments"""
    
    def __init__(self, store: LedgerStore):
        self.store = store
    
    # ===== Helpers =====
    
    def _get_program(self, account_id, program_id, for_update=False):
        program = self.store.get_program(account_id, program_id, for_update=for_update)
        if not program:
            raise NotFoundError("Program not found.")
        return program
    
    def _get_booking(self, account_id, booking_id) -> Booking:
        booking = self.store.get_booking(account_id, booking_id)
        if not booking:
            raise NotFoundError("Booking not found or not authorized")
        return booking
    
    @staticmethod
    def _check_package(program, package_name):
        if program.requires_package() and not package_name:
            raise ValidationError(
                "A package must be selected for this program.",
                {'packageId': 'A package must be selected for this program'}
            )
    
    def _check_unique(self, account_id, program_id, passport_number, exclude_id=None):
        if self.store.find_booking_by_passport(account_id, program_id, passport_number, exclude_id):
            raise ConflictError("This person is already booked for this program.")
    
    def _apply_fields(self, booking: Booking, data: Dict):
        for key in CLIENT_FIELDS:
            if key in data:
                setattr(booking, key, data[key])
        if 'passport_number' in data:
            booking.passport_number = normalize_passport(data['passport_number'])
        booking.person_type = data.get('person_type') or PersonType.ADULT.value
        booking.package_name = data.get('package_name') or None
        booking.selected_hotel = as_selection(data.get('selection'))
        booking.selling_price = parse_amount(data.get('selling_price'), 'sellingPrice')
        if 'related_persons' in data:
            booking.related_persons = list(data.get('related_persons') or [])
    
    def _reprice(self, account_id, program, booking: Booking):
        pricing = self.store.get_pricing(account_id, program.id)
        base_price = CostCalculator.compute_base_cost(
            program,
            pricing,
            booking.package_name,
            booking.selected_hotel,
            booking.person_type
        )
        booking.apply_base_price(base_price)
        booking.refresh_balance()
    
    def _flush_unique(self):
        try:
            self.store.flush()
        except IntegrityError:
            raise ConflictError("This person is already booked for this program.")
    
    # ===== Bookings =====
    
    def create_booking(self, account_id, data: Dict) -> Booking:
        """
        Create a booking and count it on its program
        
        Args:
            account_id: Owning account
            data: Cleaned booking fields (program_id, package_name, selection,
                selling_price, advance_payments, client fields)
            
        Returns:
            The persisted Booking
            
        Raises:
            NotFoundError: Program does not exist for this account
            ConflictError: Passport already booked on this program
            ValidationError: Program has packages but none was chosen
        """
        program_id = data.get('program_id')
        passport_number = normalize_passport(data.get('passport_number'))
        if not passport_number:
            raise ValidationError("Passport number is required.", {'passportNumber': 'This field is required'})

        with self.store.unit_of_work('booking create'):
            # Lock the program before the booking insert references it
            program = self._get_program(account_id, program_id, for_update=True)
            self._check_unique(account_id, program.id, passport_number)
            self._check_package(program, data.get('package_name'))
            
            booking = Booking(account_id=account_id, program_id=program.id)
            self._apply_fields(booking, data)
            booking.advance_payments = [as_payment(p) for p in data.get('advance_payments') or []]
            self._reprice(account_id, program, booking)
            
            self.store.add(booking)
            self._flush_unique()
            self.store.adjust_booking_counter(account_id, program.id, 1)
        
        logger.info(f"Created booking {booking.id} on program {program.id} (base price {booking.base_price})")
        return booking
    
    def update_booking(self, account_id, booking_id, data: Dict) -> Booking:
        """
        Update a booking and re-derive its financials against the current
        pricing configuration. Existing payments are kept.
        """
        with self.store.unit_of_work('booking update'):
            booking = self._get_booking(account_id, booking_id)
            old_program_id = booking.program_id
            program_id = data.get('program_id') or old_program_id
            program = self.store.lock_programs(account_id, [old_program_id, program_id]).get(program_id)
            if not program:
                raise NotFoundError("Program not found.")
            self._check_package(program, data.get('package_name'))

            passport_number = normalize_passport(data.get('passport_number', booking.passport_number))
            if not passport_number:
                raise ValidationError("Passport number is required.", {'passportNumber': 'This field is required'})
            self._check_unique(account_id, program.id, passport_number, exclude_id=booking.id)
            
            self._apply_fields(booking, data)
            booking.program_id = program.id
            self._reprice(account_id, program, booking)
            self._flush_unique()
            
            if program.id != old_program_id:
                self.store.adjust_booking_counter(account_id, old_program_id, -1)
                self.store.adjust_booking_counter(account_id, program.id, 1)
        
        logger.info(f"Updated booking {booking.id} (base price {booking.base_price})")
        return booking
    
    def delete_booking(self, account_id, booking_id) -> None:
        with self.store.unit_of_work('booking delete'):
            booking = self._get_booking(account_id, booking_id)
            program_id = booking.program_id
            self.store.lock_programs(account_id, [program_id])
            self.store.delete(booking)
            self.store.adjust_booking_counter(account_id, program_id, -1)
        
        logger.info(f"Deleted booking {booking_id} from program {program_id}")
    
    def delete_bookings(self, account_id, booking_ids: Iterable[str]) -> int:
        """
        Delete several bookings at once. Either every requested booking
        belongs to the account and all are deleted, or nothing is.
        
        Returns:
            Number of bookings deleted
        """
        requested = set(booking_ids or [])
        if not requested:
            raise ValidationError("No booking IDs provided.", {'bookingIds': 'At least one booking ID is required'})
        
        with self.store.unit_of_work('bulk booking delete'):
            bookings = self.store.bookings_by_ids(account_id, requested)
            if len(bookings) != len(requested):
                raise ConflictError("Some bookings were not found or you are not authorized to delete them.")
            
            per_program = Counter(b.program_id for b in bookings)
            self.store.lock_programs(account_id, per_program)
            for booking in bookings:
                self.store.delete(booking)
            for program_id, count in per_program.items():
                self.store.adjust_booking_counter(account_id, program_id, -count)
        
        logger.info(f"Deleted {len(bookings)} bookings across {len(per_program)} programs")
        return len(bookings)
    
    # ===== Payments =====
    
    def _save_payments(self, booking: Booking, payments):
        booking.advance_payments = payments
        booking.refresh_balance()
    
    def add_payment(self, account_id, booking_id, payment_data: Dict) -> Booking:
        with self.store.unit_of_work('payment add'):
            booking = self._get_booking(account_id, booking_id)
            # The id is always generated here, never taken from the request
            payment = PaymentEntry.from_dict(dict(payment_data, _id=None))
            self._save_payments(booking, list(booking.advance_payments or []) + [payment])
        
        logger.info(f"Added payment {payment.id} of {payment.amount} to booking {booking_id}")
        return booking
    
    def update_payment(self, account_id, booking_id, payment_id, payment_data: Dict) -> Booking:
        with self.store.unit_of_work('payment update'):
            booking = self._get_booking(account_id, booking_id)
            payments = []
            for payment in booking.advance_payments or []:
                if payment.id == payment_id:
                    merged = dict(payment.to_dict(), **payment_data)
                    payment = PaymentEntry.from_dict(merged, payment_id=payment.id)
                payments.append(payment)
            self._save_payments(booking, payments)
        
        return booking
    
    def delete_payment(self, account_id, booking_id, payment_id) -> Booking:
        with self.store.unit_of_work('payment delete'):
            booking = self._get_booking(account_id, booking_id)
            if booking.find_payment(payment_id) is None:
                raise NotFoundError("Payment not found")
            payments = [p for p in booking.advance_payments or [] if p.id != payment_id]
            self._save_payments(booking, payments)
        
        logger.info(f"Deleted payment {payment_id} from booking {booking_id}")
        return booking
    
    # ===== Reporting =====
    
    def summarize_program(self, account_id, program_id) -> Dict:
        """Revenue, cost, profit and payment totals over a program's bookings"""
        program = self._get_program(account_id, program_id)
        count, revenue, cost, profit, remaining = self.store.program_totals(account_id, program.id)
        revenue = Decimal(str(revenue))
        remaining = Decimal(str(remaining))
        return {
            'totalBookings': count,
            'totalRevenue': float(revenue),
            'totalCost': float(cost),
            'totalProfit': float(Decimal(str(profit))),
            'totalPaid': float(revenue - remaining),
            'totalRemaining': float(remaining),
        }
