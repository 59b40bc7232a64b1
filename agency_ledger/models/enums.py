import enum


class PersonType(enum.Enum):
    ADULT = 'adult'
    CHILD = 'child'
    INFANT = 'infant'
