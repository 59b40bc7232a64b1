"""
Sample Data Generation
Creates a realistic program, pricing configuration and bookings for development
"""

from agency_ledger.extensions import db
from agency_ledger.models import Program
from agency_ledger.models.values import City, Package, PriceStructure, RoomType
from agency_ledger.services.ledger import BookingLedger
from agency_ledger.services.program_pricing import PricingService
from agency_ledger.services.store import LedgerStore


SAMPLE_PROGRAM = {
    'name': 'Omra Ramadan',
    'program_type': 'Umrah',
    'duration': 15,
    'cities': [City('Makkah', 8), City('Madinah', 7)],
    'packages': [
        Package(
            name='Gold',
            hotels_by_city={'Makkah': ('Hilton',), 'Madinah': ('Pullman',)},
            price_structures=(
                PriceStructure(
                    hotel_combination='Hilton_Pullman',
                    room_types=(RoomType('double', 2), RoomType('quad', 4)),
                ),
            ),
        ),
    ],
}

SAMPLE_PRICING = {
    'ticket_airline': 6500,
    'visa_fees': 1200,
    'guide_fees': 300,
    'transport_fees': 500,
    'all_hotels': [
        {'name': 'Hilton', 'city': 'Makkah', 'PricePerNights': {'double': 900, 'quad': 1100}},
        {'name': 'Pullman', 'city': 'Madinah', 'PricePerNights': {'double': 700, 'quad': 850}},
    ],
    'person_types': [
        {'type': 'adult', 'ticketPercentage': 100},
        {'type': 'child', 'ticketPercentage': 75},
        {'type': 'infant', 'ticketPercentage': 10},
    ],
}

SAMPLE_BOOKINGS = [
    {
        'client_name_fr': 'Ahmed Benali',
        'client_name_ar': 'أحمد بنعلي',
        'passport_number': 'AB123456',
        'phone_number': '+212600000001',
        'person_type': 'adult',
        'package_name': 'Gold',
        'selection': {'cities': ['Makkah', 'Madinah'], 'hotelNames': ['Hilton', 'Pullman'], 'roomTypes': ['double', 'double']},
        'selling_price': 16000,
        'advance_payments': [{'amount': 5000, 'method': 'cash', 'date': '2024-01-10'}],
    },
    {
        'client_name_fr': 'Salma Benali',
        'passport_number': 'AB654321',
        'phone_number': '+212600000001',
        'person_type': 'child',
        'package_name': 'Gold',
        'selection': {'cities': ['Makkah', 'Madinah'], 'hotelNames': ['Hilton', 'Pullman'], 'roomTypes': ['quad', 'quad']},
        'selling_price': 12000,
        'advance_payments': [{'amount': 12000, 'method': 'transfer', 'date': '2024-01-12'}],
    },
]


def create_sample_program(account_id):
    """Create the sample program"""
    program = Program(account_id=account_id, total_bookings=0, **SAMPLE_PROGRAM)
    db.session.add(program)
    db.session.commit()
    return program


def create_sample_bookings(account_id, program):
    """Book the sample clients through the ledger so counters stay right"""
    ledger = BookingLedger(LedgerStore(db.session))
    return [
        ledger.create_booking(account_id, dict(data, program_id=program.id))
        for data in SAMPLE_BOOKINGS
    ]


def create_sample_pricing(account_id, program):
    """Price the sample program; existing bookings are recalculated"""
    service = PricingService(LedgerStore(db.session))
    return service.upsert_pricing_configuration(account_id, program.id, SAMPLE_PRICING)
