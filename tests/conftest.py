import pytest
from agency_ledger import create_app
from agency_ledger.extensions import db as _db
from agency_ledger.models import Program
from agency_ledger.models.values import City, Package, PriceStructure, RoomType
from agency_ledger.services.ledger import BookingLedger
from agency_ledger.services.program_pricing import PricingService
from agency_ledger.services.store import LedgerStore
from config import Config

ACCOUNT = 'account-1'
OTHER_ACCOUNT = 'account-2'

# ticket 1000 + visa 200 + guide 50 + transport 100 = 1350
# Hilton double in Makkah: 300 * 3 nights / 2 guests = 450
PRICING = {
    'ticket_airline': 1000,
    'visa_fees': 200,
    'guide_fees': 50,
    'transport_fees': 100,
    'all_hotels': [
        {'name': 'Hilton', 'city': 'Makkah', 'PricePerNights': {'double': 300, 'quad': 200}},
    ],
    'person_types': [
        {'type': 'adult', 'ticketPercentage': 100},
        {'type': 'child', 'ticketPercentage': 50},
    ],
}

class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'test-jwt-secret-key-that-is-long-enough'

@pytest.fixture
def app():
    app = create_app(TestConfig)
    
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def runner(app):
    return app.test_cli_runner()

@pytest.fixture
def db(app):
    return _db

@pytest.fixture
def store(db):
    return LedgerStore(db.session)

@pytest.fixture
def ledger(store):
    return BookingLedger(store)

@pytest.fixture
def pricing_service(store):
    return PricingService(store)

@pytest.fixture
def make_program(db):
    def _make(account_id=ACCOUNT, name='Omra', with_packages=True, nights=3):
        packages = []
        if with_packages:
            packages = [Package(
                name='Gold',
                hotels_by_city={'Makkah': ('Hilton',)},
                price_structures=(
                    PriceStructure('Hilton', (RoomType('double', 2), RoomType('quad', 4))),
                ),
            )]
        program = Program(
            account_id=account_id,
            name=name,
            cities=[City('Makkah', nights)],
            packages=packages,
            total_bookings=0,
        )
        db.session.add(program)
        db.session.commit()
        return program
    return _make

@pytest.fixture
def program(make_program):
    return make_program()

@pytest.fixture
def priced_program(program, pricing_service):
    pricing_service.upsert_pricing_configuration(ACCOUNT, program.id, PRICING)
    return program

@pytest.fixture
def booking_data():
    def _data(program, passport='P1000', **overrides):
        data = {
            'client_name_fr': 'Youssef Amrani',
            'client_name_ar': None,
            'phone_number': '+212600000000',
            'passport_number': passport,
            'person_type': 'adult',
            'program_id': program.id,
            'package_name': 'Gold',
            'selection': {'cities': ['Makkah'], 'hotelNames': ['Hilton'], 'roomTypes': ['double']},
            'selling_price': 2500,
            'advance_payments': [],
        }
        data.update(overrides)
        return data
    return _data
