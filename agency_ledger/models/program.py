from datetime import datetime, timezone
from typing import Optional
import uuid
from agency_ledger.extensions import db
from agency_ledger.models.fields import ValueList
from agency_ledger.models.values import City, Package

class Program(db.Model):
    """
    A sellable itinerary. Program metadata is maintained by the program
    catalog; the ledger only reads it and keeps total_bookings in step with
    the live bookings.
    """
    __tablename__ = 'programs'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = db.Column(db.String(36), nullable=False, index=True)
    
    name = db.Column(db.String(200), nullable=False)
    program_type = db.Column(db.String(50))
    duration = db.Column(db.Integer)
    
    # Itinerary
    cities = db.Column(ValueList(City), default=lambda: [])
    packages = db.Column(ValueList(Package), default=lambda: [])
    
    # Stats
    total_bookings = db.Column(db.Integer, default=0, nullable=False)
    
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    
    # Relationships
    bookings = db.relationship('Booking', backref='program', lazy='dynamic')
    pricing = db.relationship('ProgramPricing', backref='program', uselist=False)
    
    def requires_package(self) -> bool:
        return len(self.packages or []) > 0
    
    def find_package(self, name) -> Optional[Package]:
        for package in self.packages or []:
            if package.name == name:
                return package
        return None
    
    def find_city(self, name) -> Optional[City]:
        for city in self.cities or []:
            if city.name == name:
                return city
        return None
    
    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.program_type,
            'duration': self.duration,
            'cities': [c.to_dict() for c in self.cities or []],
            'packages': [p.to_dict() for p in self.packages or []],
            'totalBookings': self.total_bookings,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
