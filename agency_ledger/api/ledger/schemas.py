"""
Ledger API Validation Schemas
Turns camelCase request payloads into the cleaned fields the ledger services take
"""
from typing import Dict, Any, Tuple

from agency_ledger.exceptions import ValidationError
from agency_ledger.models.enums import PersonType
from agency_ledger.models.values import (
    HotelRate, PaymentEntry, PersonTypeRate, Selection, parse_amount
)


def _collect(errors, key, parse):
    """Run a value-object parser, recording its errors under key"""
    try:
        return parse()
    except ValidationError as e:
        errors[key] = e.errors.get(key) or str(e)
        return None


class LedgerSchemas:
    """Validation schemas for booking ledger endpoints"""
    
    VALID_PERSON_TYPES = [p.value for p in PersonType]
    
    # ===== Booking Schemas =====
    
    @staticmethod
    def validate_booking(data: Dict[str, Any]) -> Tuple[bool, Dict[str, str], Dict[str, Any]]:
        """
        Validate booking create/update request
        
        Returns:
            (is_valid, errors, cleaned_data)
        """
        errors = {}
        cleaned_data = {}
        data = data or {}
        
        for field, key in (('clientNameFr', 'client_name_fr'), ('clientNameAr', 'client_name_ar')):
            cleaned_data[key] = str(data[field]).strip() if data.get(field) else None
        if not cleaned_data['client_name_fr'] and not cleaned_data['client_name_ar']:
            errors['clientNameFr'] = 'Client name is required'
        
        passport = str(data.get('passportNumber') or '').strip()
        if not passport:
            errors['passportNumber'] = 'Passport number is required'
        else:
            cleaned_data['passport_number'] = passport
        
        cleaned_data['phone_number'] = str(data['phoneNumber']).strip() if data.get('phoneNumber') else None
        
        person_type = str(data.get('personType') or PersonType.ADULT.value).lower()
        if person_type not in LedgerSchemas.VALID_PERSON_TYPES:
            errors['personType'] = f'Person type must be one of: {", ".join(LedgerSchemas.VALID_PERSON_TYPES)}'
        else:
            cleaned_data['person_type'] = person_type
        
        if not data.get('tripId'):
            errors['tripId'] = 'Program is required'
        else:
            cleaned_data['program_id'] = str(data['tripId'])
        
        cleaned_data['package_name'] = str(data['packageId']).strip() if data.get('packageId') else None
        
        cleaned_data['selection'] = _collect(
            errors, 'selectedHotel', lambda: Selection.from_dict(data.get('selectedHotel'))
        )
        
        if data.get('sellingPrice') is None:
            errors['sellingPrice'] = 'Selling price is required'
        else:
            cleaned_data['selling_price'] = _collect(
                errors, 'sellingPrice', lambda: parse_amount(data['sellingPrice'], 'sellingPrice')
            )
        
        payments = data.get('advancePayments') or []
        if not isinstance(payments, list):
            errors['advancePayments'] = 'Advance payments must be a list'
        else:
            cleaned_data['advance_payments'] = [
                _collect(errors, 'advancePayments', lambda p=p: PaymentEntry.from_dict(dict(p, _id=None)))
                if isinstance(p, dict) else None
                for p in payments
            ]
            if any(p is None for p in cleaned_data['advance_payments']):
                errors.setdefault('advancePayments', 'Each payment needs a valid amount')
        
        related = data.get('relatedPersons') or []
        if not isinstance(related, list):
            errors['relatedPersons'] = 'Related persons must be a list'
        else:
            cleaned_data['related_persons'] = related
        
        return len(errors) == 0, errors, cleaned_data
    
    @staticmethod
    def validate_bulk_delete(data: Dict[str, Any]) -> Tuple[bool, Dict[str, str], Dict[str, Any]]:
        """Validate bulk delete request"""
        errors = {}
        cleaned_data = {}
        
        ids = (data or {}).get('bookingIds')
        if not isinstance(ids, list) or not ids:
            errors['bookingIds'] = 'A non-empty list of booking IDs is required'
        else:
            cleaned_data['booking_ids'] = [str(i) for i in ids]
        
        return len(errors) == 0, errors, cleaned_data
    
    # ===== Payment Schemas =====
    
    @staticmethod
    def validate_payment(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Dict[str, str], Dict[str, Any]]:
        """
        Validate payment add/update request. Unknown keys are kept as
        free-form payment metadata.
        """
        errors = {}
        data = data or {}
        cleaned_data = {k: v for k, v in data.items() if k != '_id'}
        
        if 'amount' not in data:
            if not partial:
                errors['amount'] = 'Payment amount is required'
        else:
            amount = _collect(errors, 'amount', lambda: parse_amount(data['amount'], 'amount'))
            if amount is not None and amount <= 0:
                errors['amount'] = 'Payment amount must be greater than zero'
            elif amount is not None:
                cleaned_data['amount'] = amount
        
        return len(errors) == 0, errors, cleaned_data
    
    # ===== Pricing Schemas =====
    
    @staticmethod
    def validate_pricing(data: Dict[str, Any]) -> Tuple[bool, Dict[str, str], Dict[str, Any]]:
        """Validate program pricing create/update request"""
        errors = {}
        cleaned_data = {}
        data = data or {}
        
        for field, key in (
            ('ticketAirline', 'ticket_airline'),
            ('visaFees', 'visa_fees'),
            ('guideFees', 'guide_fees'),
            ('transportFees', 'transport_fees'),
        ):
            cleaned_data[key] = _collect(errors, field, lambda field=field: parse_amount(data.get(field), field))
        
        cleaned_data['select_program'] = str(data['selectProgram']).strip() if data.get('selectProgram') else None
        
        hotels = data.get('allHotels') or []
        if not isinstance(hotels, list):
            errors['allHotels'] = 'Hotels must be a list'
        else:
            cleaned_data['all_hotels'] = [
                _collect(errors, 'allHotels', lambda h=h: HotelRate.from_dict(h)) for h in hotels
            ]
            if any(h is None for h in cleaned_data['all_hotels']):
                errors.setdefault('allHotels', 'Invalid hotel pricing')
        
        person_types = data.get('personTypes') or []
        if not isinstance(person_types, list):
            errors['personTypes'] = 'Person types must be a list'
        else:
            cleaned_data['person_types'] = [
                _collect(errors, 'personTypes', lambda p=p: PersonTypeRate.from_dict(p)) for p in person_types
            ]
            if any(p is None for p in cleaned_data['person_types']):
                errors.setdefault('personTypes', 'Invalid person type pricing')
        
        return len(errors) == 0, errors, cleaned_data
