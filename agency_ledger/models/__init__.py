from agency_ledger.models.program import Program
from agency_ledger.models.pricing import ProgramPricing
from agency_ledger.models.booking import Booking
