import logging
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache

from apps.products.models import Attribute, Team
from apps.products.services import (
    AttributeRegistry,
    CatalogService,
    InventoryLedger,
    VariationGenerator,
)


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def product_logs(caplog, monkeypatch):
    """Capture records of the apps.products loggers, which do not propagate."""
    monkeypatch.setattr(logging.getLogger('apps.products'), 'propagate', True)
    caplog.set_level(logging.INFO, logger='apps.products')
    return caplog


@pytest.fixture
def team(db):
    return Team.objects.create(name='Loja Centro', slug='loja-centro')


@pytest.fixture
def other_team(db):
    return Team.objects.create(name='Loja Norte', slug='loja-norte')


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(username='estoquista', password='senha-segura')


@pytest.fixture
def registry(team):
    return AttributeRegistry(team)


@pytest.fixture
def generator(team, user):
    return VariationGenerator(team, user)


@pytest.fixture
def ledger(team, user):
    return InventoryLedger(team, user)


@pytest.fixture
def service(team, user):
    return CatalogService(team, user)


@pytest.fixture
def item(service):
    return service.create_item(name='Camiseta Básica', sku='CAM', price=Decimal('49.90'))


@pytest.fixture
def tracked_item(service):
    return service.create_item(
        name='Caneca', sku='CAN', price=Decimal('25.00'),
        track_inventory=True, inventory_quantity=100,
    )


@pytest.fixture
def untracked_item(service):
    return service.create_item(name='Adesivo', sku='ADE', track_inventory=False, inventory_quantity=50)


@pytest.fixture
def color(registry):
    attribute = registry.define_attribute('Color', Attribute.DATA_TYPE_SELECT, is_configurable=True)
    registry.define_option(attribute, 'Red')
    registry.define_option(attribute, 'Blue')
    return attribute


@pytest.fixture
def size(registry):
    attribute = registry.define_attribute('Size', Attribute.DATA_TYPE_SELECT, is_configurable=True)
    for value in ('S', 'M', 'L'):
        registry.define_option(attribute, value)
    return attribute


@pytest.fixture
def material(registry):
    return registry.define_attribute('Material', Attribute.DATA_TYPE_SELECT, is_configurable=True)


@pytest.fixture
def variations(generator, item, color, size):
    return generator.generate_variations(item, [color.pk, size.pk])
