"""
Typed value objects for the nested structures stored on programs, pricing
configurations and bookings.

Stored JSON keeps the camelCase layout written by the agency front end
(hotelCombination, roomTypes, PricePerNights, ticketPercentage, ...).
from_dict validates and raises ValidationError, to_dict returns plain JSON.
"""
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from agency_ledger.exceptions import ValidationError

# A room type stored without a guest count is priced as a single room.
# Zero or negative counts are kept as stored; the cost calculator prices them at 0.
DEFAULT_ROOM_GUESTS = 1


def _require_mapping(data, name):
    if not isinstance(data, dict):
        raise ValidationError(f'{name} must be an object', {name: 'Expected an object'})
    return data


def _require_list(data, name):
    if data is None:
        return []
    if not isinstance(data, (list, tuple)):
        raise ValidationError(f'{name} must be a list', {name: 'Expected a list'})
    return data


def _text(value, name, required=True):
    if value is None or str(value).strip() == '':
        if required:
            raise ValidationError(f'{name} is required', {name: 'This field is required'})
        return ''
    return str(value).strip()


def parse_amount(value, name, allow_negative=False) -> Decimal:
    """Parse a money amount into a Decimal"""
    if isinstance(value, bool):
        raise ValidationError(f'Invalid {name}', {name: 'Invalid amount'})
    try:
        amount = Decimal(str(value if value not in (None, '') else 0))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f'Invalid {name}', {name: 'Invalid amount'})
    if not amount.is_finite():
        raise ValidationError(f'Invalid {name}', {name: 'Invalid amount'})
    if amount < 0 and not allow_negative:
        raise ValidationError(f'{name} cannot be negative', {name: 'Amount cannot be negative'})
    return amount


def _int(value, name) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'Invalid {name}', {name: 'Expected an integer'})
    try:
        number = int(value)
    except (ValueError, TypeError):
        raise ValidationError(f'Invalid {name}', {name: 'Expected an integer'})
    if number != Decimal(str(value)):
        raise ValidationError(f'Invalid {name}', {name: 'Expected an integer'})
    return number


def _json_amount(amount: Decimal):
    return int(amount) if amount == amount.to_integral_value() else float(amount)


# ===== Program catalog =====

@dataclass(frozen=True)
class City:
    name: str
    nights: int = 0

    @classmethod
    def from_dict(cls, data):
        data = _require_mapping(data, 'city')
        return cls(
            name=_text(data.get('name'), 'city.name'),
            nights=_int(data.get('nights', 0) or 0, 'city.nights'),
        )

    def to_dict(self):
        return {'name': self.name, 'nights': self.nights}


@dataclass(frozen=True)
class RoomType:
    type: str
    guests: int = DEFAULT_ROOM_GUESTS

    @classmethod
    def from_dict(cls, data):
        data = _require_mapping(data, 'roomType')
        guests = data.get('guests')
        return cls(
            type=_text(data.get('type'), 'roomType.type'),
            guests=DEFAULT_ROOM_GUESTS if guests is None else _int(guests, 'roomType.guests'),
        )

    def to_dict(self):
        return {'type': self.type, 'guests': self.guests}


@dataclass(frozen=True)
class PriceStructure:
    hotel_combination: str
    room_types: Tuple[RoomType, ...] = ()

    @classmethod
    def from_dict(cls, data):
        data = _require_mapping(data, 'price')
        return cls(
            hotel_combination=_text(data.get('hotelCombination'), 'price.hotelCombination'),
            room_types=tuple(
                RoomType.from_dict(rt) for rt in _require_list(data.get('roomTypes'), 'price.roomTypes')
            ),
        )

    def guests_for(self, room_type: str) -> Optional[int]:
        for rt in self.room_types:
            if rt.type == room_type:
                return rt.guests
        return None

    def to_dict(self):
        return {
            'hotelCombination': self.hotel_combination,
            'roomTypes': [rt.to_dict() for rt in self.room_types],
        }


@dataclass(frozen=True)
class Package:
    name: str
    hotels_by_city: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    price_structures: Tuple[PriceStructure, ...] = ()

    @classmethod
    def from_dict(cls, data):
        data = _require_mapping(data, 'package')
        hotels = _require_mapping(data.get('hotels') or {}, 'package.hotels')
        return cls(
            name=_text(data.get('name'), 'package.name'),
            hotels_by_city={
                str(city): tuple(str(h) for h in _require_list(names, 'package.hotels'))
                for city, names in hotels.items()
            },
            price_structures=tuple(
                PriceStructure.from_dict(p) for p in _require_list(data.get('prices'), 'package.prices')
            ),
        )

    # frozen dataclasses holding a dict are not hashable by default
    def __hash__(self):
        return hash((self.name, self.price_structures))

    def price_structure_for(self, hotel_combination: str) -> Optional[PriceStructure]:
        for structure in self.price_structures:
            if structure.hotel_combination == hotel_combination:
                return structure
        return None

    def to_dict(self):
        return {
            'name': self.name,
            'hotels': {city: list(names) for city, names in self.hotels_by_city.items()},
            'prices': [p.to_dict() for p in self.price_structures],
        }


# ===== Pricing configuration =====

@dataclass(frozen=True)
class HotelRate:
    name: str
    city: str
    price_per_night: Dict[str, Decimal] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        data = _require_mapping(data, 'hotel')
        prices = _require_mapping(data.get('PricePerNights') or {}, 'hotel.PricePerNights')
        return cls(
            name=_text(data.get('name'), 'hotel.name'),
            city=_text(data.get('city'), 'hotel.city'),
            price_per_night={
                str(room_type): parse_amount(amount, 'hotel.PricePerNights')
                for room_type, amount in prices.items()
            },
        )

    def __hash__(self):
        return hash((self.name, self.city))

    def to_dict(self):
        return {
            'name': self.name,
            'city': self.city,
            'PricePerNights': {k: _json_amount(v) for k, v in self.price_per_night.items()},
        }


@dataclass(frozen=True)
class PersonTypeRate:
    person_type: str
    ticket_percentage: Decimal

    @classmethod
    def from_dict(cls, data):
        data = _require_mapping(data, 'personType')
        if data.get('ticketPercentage') is None:
            raise ValidationError(
                'Ticket percentage is required',
                {'personType.ticketPercentage': 'This field is required'}
            )
        percentage = parse_amount(data.get('ticketPercentage'), 'personType.ticketPercentage')
        if percentage > 100:
            raise ValidationError(
                'Ticket percentage must be between 0 and 100',
                {'personType.ticketPercentage': 'Must be between 0 and 100'}
            )
        return cls(
            person_type=_text(data.get('type'), 'personType.type'),
            ticket_percentage=percentage,
        )

    def to_dict(self):
        return {'type': self.person_type, 'ticketPercentage': _json_amount(self.ticket_percentage)}


# ===== Booking =====

@dataclass(frozen=True)
class Selection:
    """Chosen city / hotel / room type, one entry per assigned city"""
    cities: Tuple[str, ...] = ()
    hotel_names: Tuple[str, ...] = ()
    room_types: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data):
        if data is None:
            return cls()
        data = _require_mapping(data, 'selectedHotel')
        cities = tuple(str(c or '') for c in _require_list(data.get('cities'), 'selectedHotel.cities'))
        hotel_names = tuple(str(h or '') for h in _require_list(data.get('hotelNames'), 'selectedHotel.hotelNames'))
        room_types = tuple(str(r or '') for r in _require_list(data.get('roomTypes'), 'selectedHotel.roomTypes'))
        if not len(cities) == len(hotel_names) == len(room_types):
            raise ValidationError(
                'Selected hotel lists must have one entry per city',
                {'selectedHotel': 'cities, hotelNames and roomTypes must have the same length'}
            )
        return cls(cities=cities, hotel_names=hotel_names, room_types=room_types)

    def entries(self):
        return zip(self.cities, self.hotel_names, self.room_types)

    def has_hotels(self) -> bool:
        return any(self.hotel_names)

    def to_dict(self):
        return {
            'cities': list(self.cities),
            'hotelNames': list(self.hotel_names),
            'roomTypes': list(self.room_types),
        }


@dataclass(frozen=True)
class PaymentEntry:
    """An advance payment recorded against a booking"""
    id: str
    amount: Decimal
    payment_date: Optional[str] = None
    method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS = ('_id', 'amount', 'date', 'method', 'reference', 'notes')

    @classmethod
    def from_dict(cls, data, payment_id=None):
        data = _require_mapping(data, 'payment')
        if data.get('amount') is None:
            raise ValidationError('Payment amount is required', {'amount': 'This field is required'})
        return cls(
            id=payment_id or str(data.get('_id') or '') or new_payment_id(),
            amount=parse_amount(data.get('amount'), 'amount'),
            payment_date=_text(data.get('date'), 'date', required=False) or None,
            method=_text(data.get('method'), 'method', required=False) or None,
            reference=_text(data.get('reference'), 'reference', required=False) or None,
            notes=_text(data.get('notes'), 'notes', required=False) or None,
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_KEYS},
        )

    def __hash__(self):
        return hash(self.id)

    def to_dict(self):
        data = dict(self.extra)
        data.update({
            '_id': self.id,
            'amount': _json_amount(self.amount),
            'date': self.payment_date,
            'method': self.method,
            'reference': self.reference,
            'notes': self.notes,
        })
        return data


def new_payment_id() -> str:
    return uuid.uuid4().hex
