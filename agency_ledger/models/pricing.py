from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import uuid
from agency_ledger.extensions import db
from agency_ledger.models.fields import ValueList
from agency_ledger.models.values import HotelRate, PersonTypeRate

class ProgramPricing(db.Model):
    """Cost inputs for one program (one-to-one)"""
    __tablename__ = 'program_pricing'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = db.Column(db.String(36), nullable=False, index=True)
    program_id = db.Column(db.String(36), db.ForeignKey('programs.id'), nullable=False, unique=True, index=True)
    select_program = db.Column(db.String(200))  # program name as shown when the pricing was entered
    
    # Flat fees
    ticket_airline = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    visa_fees = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    guide_fees = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    transport_fees = db.Column(db.Numeric(12, 2), default=0, nullable=False)
    
    all_hotels = db.Column(ValueList(HotelRate), default=lambda: [])
    person_types = db.Column(ValueList(PersonTypeRate), default=lambda: [])
    
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    
    def find_hotel(self, name, city) -> Optional[HotelRate]:
        for hotel in self.all_hotels or []:
            if hotel.name == name and hotel.city == city:
                return hotel
        return None
    
    def ticket_percentage_for(self, person_type) -> Optional[Decimal]:
        for rate in self.person_types or []:
            if rate.person_type == person_type:
                return rate.ticket_percentage
        return None
    
    def to_dict(self):
        return {
            'id': self.id,
            'programId': self.program_id,
            'selectProgram': self.select_program,
            'ticketAirline': float(self.ticket_airline or 0),
            'visaFees': float(self.visa_fees or 0),
            'guideFees': float(self.guide_fees or 0),
            'transportFees': float(self.transport_fees or 0),
            'allHotels': [h.to_dict() for h in self.all_hotels or []],
            'personTypes': [p.to_dict() for p in self.person_types or []],
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
