"""
Column types for nested structures.

ValueList and ValueObject store value objects as JSON and rebuild them when
rows are loaded, so stored data is validated once at the storage boundary.
"""
from sqlalchemy.types import JSON, TypeDecorator


class ValueList(TypeDecorator):
    """JSON column holding a list of value objects"""

    impl = JSON
    cache_ok = True

    def __init__(self, value_type, *args, **kwargs):
        self.value_type = value_type
        super().__init__(*args, **kwargs)

    def process_bind_param(self, value, dialect):
        if value is None:
            return []
        return [item.to_dict() if hasattr(item, 'to_dict') else item for item in value]

    def process_result_value(self, value, dialect):
        return [self.value_type.from_dict(item) for item in (value or [])]


class ValueObject(TypeDecorator):
    """JSON column holding a single value object"""

    impl = JSON
    cache_ok = True

    def __init__(self, value_type, *args, **kwargs):
        self.value_type = value_type
        super().__init__(*args, **kwargs)

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return value.to_dict() if hasattr(value, 'to_dict') else value

    def process_result_value(self, value, dialect):
        return self.value_type.from_dict(value)
