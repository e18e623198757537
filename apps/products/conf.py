"""
Engine policies, read from Django settings with defaults.

Read through the accessors below at call time so tests can use
``override_settings``.
"""

from django.conf import settings

DEFAULTS = {
    'PRODUCTS_ENFORCE_REQUIRED_ATTRIBUTES': False,
    'PRODUCTS_DEDUPLICATE_REFERENCES': False,
    'PRODUCTS_LOW_STOCK_THRESHOLD': 10,
    'PRODUCTS_OPTION_CACHE_TIMEOUT': 300,
}


def get_setting(name):
    return getattr(settings, name, DEFAULTS[name])


def enforce_required_attributes():
    return bool(get_setting('PRODUCTS_ENFORCE_REQUIRED_ATTRIBUTES'))


def deduplicate_references():
    return bool(get_setting('PRODUCTS_DEDUPLICATE_REFERENCES'))


def low_stock_threshold():
    return int(get_setting('PRODUCTS_LOW_STOCK_THRESHOLD'))


def option_cache_timeout():
    return int(get_setting('PRODUCTS_OPTION_CACHE_TIMEOUT'))
