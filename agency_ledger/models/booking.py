from datetime import datetime, timezone
from decimal import Decimal
import uuid
from agency_ledger.extensions import db
from agency_ledger.models.enums import PersonType
from agency_ledger.models.fields import ValueList, ValueObject
from agency_ledger.models.values import PaymentEntry, Selection

class Booking(db.Model):
    __tablename__ = 'bookings'
    __table_args__ = (
        db.UniqueConstraint('account_id', 'program_id', 'passport_number', name='uq_booking_passport_per_program'),
    )
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    
    # Owning account
    account_id = db.Column(db.String(36), nullable=False, index=True)
    
    # Client info
    client_name_ar = db.Column(db.String(200))
    client_name_fr = db.Column(db.String(200))
    person_type = db.Column(db.String(20), default=PersonType.ADULT.value, nullable=False)
    phone_number = db.Column(db.String(50))
    passport_number = db.Column(db.String(50), nullable=False)
    
    # Program and hotel selection
    program_id = db.Column(db.String(36), db.ForeignKey('programs.id'), nullable=False, index=True)
    package_name = db.Column(db.String(200))
    selected_hotel = db.Column(ValueObject(Selection), default=lambda: Selection())
    
    # Pricing
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    base_price = db.Column(db.Integer, nullable=False, default=0)
    profit = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    
    # Payments
    advance_payments = db.Column(ValueList(PaymentEntry), default=lambda: [])
    remaining_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    is_fully_paid = db.Column(db.Boolean, nullable=False, default=False)
    
    # Grouping only (family members travelling together)
    related_persons = db.Column(db.JSON, default=lambda: [])
    
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    
    def total_paid(self) -> Decimal:
        return sum((p.amount for p in self.advance_payments or []), Decimal('0'))
    
    def apply_base_price(self, base_price: int):
        """Set the cost basis and the profit derived from it"""
        self.base_price = base_price
        self.profit = Decimal(str(self.selling_price or 0)) - base_price
    
    def refresh_balance(self):
        """Recompute remaining balance and paid-in-full flag from the payments"""
        self.remaining_balance = Decimal(str(self.selling_price or 0)) - self.total_paid()
        self.is_fully_paid = self.remaining_balance <= 0
    
    def find_payment(self, payment_id):
        for payment in self.advance_payments or []:
            if payment.id == payment_id:
                return payment
        return None
    
    def to_dict(self, include_payments: bool = True):
        data = {
            'id': self.id,
            'clientNameAr': self.client_name_ar,
            'clientNameFr': self.client_name_fr,
            'personType': self.person_type,
            'phoneNumber': self.phone_number,
            'passportNumber': self.passport_number,
            'tripId': self.program_id,
            'packageId': self.package_name,
            'selectedHotel': (self.selected_hotel or Selection()).to_dict(),
            'sellingPrice': float(self.selling_price or 0),
            'basePrice': self.base_price,
            'profit': float(self.profit or 0),
            'remainingBalance': float(self.remaining_balance or 0),
            'isFullyPaid': bool(self.is_fully_paid),
            'relatedPersons': self.related_persons or [],
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_payments:
            data['advancePayments'] = [p.to_dict() for p in self.advance_payments or []]
        return data
