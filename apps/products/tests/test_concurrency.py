import threading

import pytest
from django.db import connection, connections

from apps.products.models import CatalogItem, InventoryAdjustment
from apps.products.services import InventoryLedger

pytestmark = [
    pytest.mark.skipif(connection.vendor != 'postgresql', reason='row locks need PostgreSQL'),
    pytest.mark.django_db(transaction=True),
]


def test_concurrent_sales_never_oversell(team, service):
    owner = service.create_item(name='Tinta Azul', sku='TIN', track_inventory=True, inventory_quantity=10)
    barrier = threading.Barrier(2)
    errors = []

    def sell(reference):
        try:
            barrier.wait()
            InventoryLedger(team).decrement_for_sale(CatalogItem.objects.get(pk=owner.pk), 6, reference)
        except Exception as exc:  # pragma: no cover
            errors.append(exc)
        finally:
            connections.close_all()

    threads = [threading.Thread(target=sell, args=(f'sale-{n}',)) for n in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    owner.refresh_from_db()
    assert owner.inventory_quantity == 0
    deltas = sorted(a.adjustment_quantity for a in InventoryAdjustment.objects.for_owner(owner))
    assert deltas == [-6, -4]
