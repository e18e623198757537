from decimal import Decimal

import pytest

from apps.products.value_types import get_value_type

OPTIONS = ['Red', 'Blue']


@pytest.mark.parametrize('value', [42, -3, 2.5, Decimal('10.75'), '42', '-3.5', '1e3', ' 7 ', '.5'])
def test_number_accepts_numeric_values_and_strings(value):
    assert get_value_type('number').validate(value)


@pytest.mark.parametrize('value', ['12abc', 'abc', '', '1.2.3', True, False, None, [1], float('nan')])
def test_number_rejects_everything_else(value):
    assert not get_value_type('number').validate(value)


@pytest.mark.parametrize('value', [True, False, '1', '0', 'true', 'false'])
def test_boolean_accepts_listed_values(value):
    assert get_value_type('boolean').validate(value)


@pytest.mark.parametrize('value', ['yes', 'no', 'True', 'FALSE', 1, 0, None, [], ''])
def test_boolean_rejects_other_values(value):
    assert not get_value_type('boolean').validate(value)


def test_text_accepts_any_string_including_empty():
    text = get_value_type('text')
    assert text.validate('')
    assert text.validate('Algodão')
    assert not text.validate(12)
    assert not text.validate(None)


def test_select_requires_exact_option_match():
    select = get_value_type('select')
    assert select.validate('Red', OPTIONS)
    assert not select.validate('red', OPTIONS)
    assert not select.validate('Green', OPTIONS)
    assert not select.validate(['Red'], OPTIONS)


def test_multi_select_requires_list_of_known_options():
    multi = get_value_type('multi_select')
    assert multi.validate([], OPTIONS)
    assert multi.validate(['Red', 'Blue'], OPTIONS)
    assert not multi.validate(['Red', 'Green'], OPTIONS)
    assert not multi.validate('Red', OPTIONS)


def test_display_values():
    assert get_value_type('multi_select').display(['Red', 'Blue']) == 'Red, Blue'
    assert get_value_type('boolean').display(True) == 'true'
    assert get_value_type('number').display(180) == '180'
    assert get_value_type('text').display(None) == ''


def test_unknown_data_type():
    with pytest.raises(ValueError):
        get_value_type('date')
