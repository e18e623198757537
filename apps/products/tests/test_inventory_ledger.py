import pytest
from django.test import override_settings

from apps.products.exceptions import (
    InsufficientInventory,
    InvalidQuantity,
    InventoryTrackingDisabled,
    NotFound,
    StockHeldByVariations,
)
from apps.products.models import CatalogItem, ImmutableRecordError, InventoryAdjustment
from apps.products.services import UNLIMITED, InventoryLedger


def history(owner):
    return list(InventoryAdjustment.objects.for_owner(owner).order_by('id'))


class TestTrackedOwner:

    def test_reserve_then_sell(self, ledger, tracked_item):
        assert ledger.reserve_inventory(tracked_item, 30) is True
        assert tracked_item.reserved_quantity == 30
        assert ledger.get_available_quantity(tracked_item) == 70

        adjustment = ledger.decrement_for_sale(tracked_item, 20, 'sale-1')

        tracked_item.refresh_from_db()
        assert tracked_item.inventory_quantity == 80
        assert tracked_item.reserved_quantity == 30
        assert ledger.get_available_quantity(tracked_item) == 50
        assert (adjustment.quantity_before, adjustment.quantity_after) == (100, 80)
        assert adjustment.adjustment_quantity == -20
        assert adjustment.reason == 'Sale'
        assert adjustment.reference_type == 'sale'
        assert adjustment.reference_id == 'sale-1'

    def test_sale_clamps_at_zero(self, ledger, service):
        owner = service.create_item(name='Pincel', sku='PIN', track_inventory=True, inventory_quantity=10)

        adjustment = ledger.decrement_for_sale(owner, 25, 'sale-2')

        owner.refresh_from_db()
        assert owner.inventory_quantity == 0
        assert adjustment.adjustment_quantity == -10
        assert adjustment.quantity_after == 0

    def test_stale_instance_clamps_on_locked_values(self, ledger, tracked_item):
        stale = CatalogItem.objects.get(pk=tracked_item.pk)
        ledger.decrement_for_sale(tracked_item, 96, 'sale-a')

        adjustment = ledger.decrement_for_sale(stale, 6, 'sale-b')

        assert (adjustment.quantity_before, adjustment.quantity_after) == (4, 0)
        assert adjustment.adjustment_quantity == -4
        assert stale.inventory_quantity == 0
        tracked_item.refresh_from_db()
        assert tracked_item.inventory_quantity == 0

    def test_return(self, ledger, tracked_item):
        adjustment = ledger.increment_for_return(tracked_item, 5, 'ret-1')
        assert tracked_item.inventory_quantity == 105
        assert adjustment.reason == 'Return'
        assert adjustment.reference_type == 'return'

    def test_adjust_records_metadata_and_user(self, ledger, tracked_item, user, team):
        adjustment = ledger.adjust_inventory(
            tracked_item, -7, reason='Inventário', notes='Contagem anual',
            reference_type='count', reference_id=2024,
        )
        assert adjustment.adjustment_quantity == -7
        assert adjustment.notes == 'Contagem anual'
        assert adjustment.reference_id == '2024'
        assert adjustment.user == user
        assert adjustment.team == team
        assert adjustment.owner == tracked_item

    def test_release_floors_reserved_at_zero(self, ledger, tracked_item):
        ledger.reserve_inventory(tracked_item, 5)
        adjustment = ledger.release_inventory(tracked_item, 8)
        assert tracked_item.reserved_quantity == 0
        assert (adjustment.reserved_before, adjustment.reserved_after) == (5, 0)
        assert adjustment.adjustment_quantity == 0

    def test_over_reservation_rejected(self, ledger, tracked_item):
        ledger.reserve_inventory(tracked_item, 90)
        assert ledger.reserve_inventory(tracked_item, 11) is False
        tracked_item.refresh_from_db()
        assert tracked_item.reserved_quantity == 90
        assert len(history(tracked_item)) == 1

    def test_reservations_are_audited(self, ledger, tracked_item):
        ledger.reserve_inventory(tracked_item, 4, reference_type='order', reference_id='PED-1')
        ledger.release_inventory(tracked_item, 4)
        reserve, release = history(tracked_item)
        assert reserve.reason == 'Reservation'
        assert reserve.reference_id == 'PED-1'
        assert reserve.quantity_before == reserve.quantity_after == 100
        assert release.reason == 'Release'
        assert release.reference_type == 'release'

    @pytest.mark.parametrize('quantity', [0, -3, 2.5, True])
    def test_invalid_quantities(self, ledger, tracked_item, quantity):
        with pytest.raises(InvalidQuantity):
            ledger.decrement_for_sale(tracked_item, quantity, 'x')
        assert history(tracked_item) == []

    def test_counters_stay_consistent_after_mixed_sequence(self, ledger, tracked_item):
        ledger.reserve_inventory(tracked_item, 60)
        ledger.decrement_for_sale(tracked_item, 80, 's1')
        ledger.adjust_inventory(tracked_item, -500)
        ledger.increment_for_return(tracked_item, 3, 'r1')
        ledger.release_inventory(tracked_item, 100)

        tracked_item.refresh_from_db()
        assert tracked_item.inventory_quantity == 3
        assert tracked_item.reserved_quantity == 0
        assert ledger.get_available_quantity(tracked_item) == 3
        for adjustment in history(tracked_item):
            assert adjustment.quantity_after - adjustment.quantity_before == adjustment.adjustment_quantity
            assert adjustment.quantity_after >= 0

    def test_history_most_recent_first(self, ledger, tracked_item):
        ledger.increment_for_return(tracked_item, 1, 'a')
        ledger.increment_for_return(tracked_item, 2, 'b')
        ledger.increment_for_return(tracked_item, 3, 'c')
        assert [a.reference_id for a in ledger.get_adjustment_history(tracked_item)] == ['c', 'b', 'a']
        assert len(ledger.get_adjustment_history(tracked_item, limit=2)) == 2


class TestUntrackedOwner:

    def test_sale_rejected_without_audit(self, ledger, untracked_item):
        with pytest.raises(InventoryTrackingDisabled):
            ledger.decrement_for_sale(untracked_item, 5, 'sale-3')
        untracked_item.refresh_from_db()
        assert untracked_item.inventory_quantity == 50
        assert history(untracked_item) == []

    @pytest.mark.parametrize('operation', [
        lambda ledger, owner: ledger.increment_for_return(owner, 1, 'r'),
        lambda ledger, owner: ledger.adjust_inventory(owner, 1),
        lambda ledger, owner: ledger.reserve_inventory(owner, 1),
        lambda ledger, owner: ledger.release_inventory(owner, 1),
    ])
    def test_every_mutation_rejected(self, ledger, untracked_item, operation):
        with pytest.raises(InventoryTrackingDisabled):
            operation(ledger, untracked_item)
        assert history(untracked_item) == []

    def test_available_is_unlimited(self, ledger, untracked_item):
        assert ledger.get_available_quantity(untracked_item) == UNLIMITED
        assert not ledger.is_low_stock(untracked_item)


class TestVariationsAndParents:

    @pytest.fixture
    def stocked(self, generator, service, color):
        parent = service.create_item(name='Caneca Colorida', sku='CNC', track_inventory=True)
        red, blue = generator.generate_variations(parent, [color.pk])
        generator.update_variation(red, {'inventory_quantity': 10})
        generator.update_variation(blue, {'inventory_quantity': 4})
        for owner in (parent, red, blue):
            owner.refresh_from_db()
        return parent, red, blue

    def test_parent_available_is_sum_of_variations(self, ledger, stocked):
        parent, red, blue = stocked
        ledger.reserve_inventory(red, 3)
        assert ledger.get_available_quantity(parent) == 7 + 4

    def test_retired_variations_do_not_count(self, ledger, generator, stocked):
        parent, red, blue = stocked
        generator.delete_variation(blue)
        assert ledger.get_available_quantity(parent) == 10

    @pytest.mark.parametrize('operation', [
        lambda ledger, owner: ledger.reserve_inventory(owner, 14),
        lambda ledger, owner: ledger.release_inventory(owner, 1),
        lambda ledger, owner: ledger.decrement_for_sale(owner, 1, 'sale-p'),
        lambda ledger, owner: ledger.adjust_inventory(owner, 500),
    ])
    def test_parent_with_variations_rejects_mutations(self, ledger, stocked, operation):
        parent, red, blue = stocked
        with pytest.raises(StockHeldByVariations):
            operation(ledger, parent)
        parent.refresh_from_db()
        assert (parent.inventory_quantity, parent.reserved_quantity) == (0, 0)
        assert history(parent) == []
        assert ledger.get_available_quantity(parent) == 14

    def test_parent_without_active_variations_keeps_own_stock(self, ledger, generator, stocked):
        parent, red, blue = stocked
        generator.delete_variation(red)
        generator.delete_variation(blue)
        ledger.adjust_inventory(parent, 5)
        assert ledger.get_available_quantity(parent) == 5

    def test_variation_of_other_team_not_found(self, stocked, other_team):
        parent, red, blue = stocked
        with pytest.raises(NotFound):
            InventoryLedger(other_team).adjust_inventory(red, 1)

    def test_low_stock(self, ledger, stocked, tracked_item):
        parent, red, blue = stocked
        assert ledger.is_low_stock(blue)
        assert not ledger.is_low_stock(red, threshold=5)
        low = ledger.get_low_stock_items()
        assert blue in low
        assert red in low
        assert parent not in low
        assert tracked_item not in low

    def test_inventory_stats(self, ledger, stocked):
        parent, red, blue = stocked
        ledger.reserve_inventory(red, 2)
        stats = ledger.get_inventory_stats(parent)
        assert stats['total_inventory'] == 14
        assert stats['total_reserved'] == 2
        assert stats['total_available'] == 12
        assert [v['available_quantity'] for v in stats['variations']] == [8, 4]


class TestOrders:

    def test_can_fulfill_order(self, ledger, tracked_item, untracked_item):
        results = ledger.can_fulfill_order([
            {'owner': tracked_item, 'quantity': 120},
            {'owner': untracked_item, 'quantity': 1000},
        ])
        assert results[0]['can_fulfill'] is False
        assert results[0]['shortage'] == 20
        assert results[1]['can_fulfill'] is True

    def test_reserve_for_order_is_all_or_nothing(self, ledger, service, tracked_item):
        scarce = service.create_item(name='Tela', sku='TEL', track_inventory=True, inventory_quantity=2)
        with pytest.raises(InsufficientInventory):
            ledger.reserve_for_order([
                {'owner': tracked_item, 'quantity': 10},
                {'owner': scarce, 'quantity': 5},
            ], 'PED-9')
        tracked_item.refresh_from_db()
        assert tracked_item.reserved_quantity == 0
        assert history(tracked_item) == []

    def test_reserve_and_release_order(self, ledger, tracked_item):
        ledger.reserve_for_order([{'owner': tracked_item, 'quantity': 10}], 'PED-10')
        ledger.release_for_order([{'owner': tracked_item, 'quantity': 10}], 'PED-10')
        tracked_item.refresh_from_db()
        assert tracked_item.reserved_quantity == 0
        assert {a.reference_id for a in history(tracked_item)} == {'PED-10'}

    def test_bulk_adjust_is_atomic(self, ledger, tracked_item, untracked_item):
        with pytest.raises(InventoryTrackingDisabled):
            ledger.bulk_adjust([
                {'owner': tracked_item, 'quantity': 5},
                {'owner': untracked_item, 'quantity': 5},
            ])
        tracked_item.refresh_from_db()
        assert tracked_item.inventory_quantity == 100
        assert history(tracked_item) == []


class TestReferenceDeduplication:

    def test_repeats_are_independent_by_default(self, ledger, tracked_item):
        ledger.decrement_for_sale(tracked_item, 1, 'sale-7')
        ledger.decrement_for_sale(tracked_item, 1, 'sale-7')
        assert tracked_item.inventory_quantity == 98

    @override_settings(PRODUCTS_DEDUPLICATE_REFERENCES=True)
    def test_repeats_deduplicated_when_enabled(self, ledger, tracked_item):
        first = ledger.decrement_for_sale(tracked_item, 1, 'sale-7')
        second = ledger.decrement_for_sale(tracked_item, 1, 'sale-7')
        assert first.pk == second.pk
        assert tracked_item.inventory_quantity == 99
        assert len(history(tracked_item)) == 1


class TestAuditTrail:

    def test_adjustments_cannot_be_changed(self, ledger, tracked_item):
        adjustment = ledger.increment_for_return(tracked_item, 1, 'r')
        adjustment.notes = 'editado'
        with pytest.raises(ImmutableRecordError):
            adjustment.save()
        with pytest.raises(ImmutableRecordError):
            adjustment.delete()
        with pytest.raises(ImmutableRecordError):
            InventoryAdjustment.objects.for_owner(tracked_item).update(notes='x')
