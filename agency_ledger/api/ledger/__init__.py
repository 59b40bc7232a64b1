"""
Ledger API Blueprint
Bookings, advance payments and program pricing for the authenticated account
"""
from flask import Blueprint

from agency_ledger.extensions import db
from agency_ledger.services.ledger import BookingLedger
from agency_ledger.services.program_pricing import PricingService
from agency_ledger.services.store import LedgerStore

ledger_bp = Blueprint('ledger', __name__, url_prefix='/api')


def get_ledger() -> BookingLedger:
    return BookingLedger(LedgerStore(db.session))


def get_pricing_service() -> PricingService:
    return PricingService(LedgerStore(db.session))


# Import routes after blueprint creation to avoid circular imports
from . import bookings, payments, pricing
