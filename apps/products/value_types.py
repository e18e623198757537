"""
Value strategies for attribute data types.

Each data type shares the same storage slot on an assignment (an option
reference or a JSON custom value), so the per-type rules live here and are
looked up from the attribute's declared ``data_type``.
"""

import math
import re
from decimal import Decimal
from typing import Any, Iterable, Optional

NUMERIC_RE = re.compile(r'^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$')

BOOLEAN_STRINGS = ('1', '0', 'true', 'false')


class ValueType:
    """Base strategy: validation, storage and display for one data type."""

    requires_options = False

    def validate(self, value: Any, options: Iterable[str] = ()) -> bool:
        raise NotImplementedError

    def option_for(self, value: Any, options: Iterable[str]) -> Optional[str]:
        """Option value to reference instead of storing a custom value."""
        return None

    def is_empty(self, value: Any) -> bool:
        return value is None or value == ''

    def display(self, value: Any) -> str:
        if value is None:
            return ''
        return str(value)


class TextType(ValueType):

    def validate(self, value, options=()):
        return isinstance(value, str)


class NumberType(ValueType):

    def validate(self, value, options=()):
        if isinstance(value, bool):
            return False
        if isinstance(value, int):
            return True
        if isinstance(value, Decimal):
            return value.is_finite()
        if isinstance(value, float):
            return math.isfinite(value)
        if isinstance(value, str):
            return bool(NUMERIC_RE.match(value))
        return False


class BooleanType(ValueType):

    def validate(self, value, options=()):
        if isinstance(value, bool):
            return True
        return isinstance(value, str) and value in BOOLEAN_STRINGS

    def display(self, value):
        if isinstance(value, bool):
            return 'true' if value else 'false'
        return super().display(value)


class SelectType(ValueType):
    requires_options = True

    def validate(self, value, options=()):
        return isinstance(value, str) and value in set(options)

    def option_for(self, value, options):
        if isinstance(value, str) and value in set(options):
            return value
        return None


class MultiSelectType(ValueType):
    requires_options = True

    def validate(self, value, options=()):
        if not isinstance(value, (list, tuple)):
            return False
        allowed = set(options)
        return all(isinstance(item, str) and item in allowed for item in value)

    def is_empty(self, value):
        return value is None or value == '' or (isinstance(value, (list, tuple)) and len(value) == 0)

    def display(self, value):
        if isinstance(value, (list, tuple)):
            return ', '.join(str(item) for item in value)
        return super().display(value)


VALUE_TYPES = {
    'text': TextType(),
    'number': NumberType(),
    'boolean': BooleanType(),
    'select': SelectType(),
    'multi_select': MultiSelectType(),
}


def get_value_type(data_type: str) -> ValueType:
    try:
        return VALUE_TYPES[data_type]
    except KeyError:
        raise ValueError(f"Unknown attribute data type: {data_type}")
