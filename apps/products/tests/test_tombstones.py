import pytest

from apps.products.exceptions import UniquenessViolation
from apps.products.models import TombstoneMode, Variation


def snapshot(variation):
    return (variation.sku, variation.price, variation.options, variation.inventory_quantity,
            variation.reserved_quantity, variation.name)


def test_retiring_hides_variation_from_default_listing(generator, item, variations):
    retired = variations[2]
    before = snapshot(retired)

    generator.delete_variation(retired)

    assert item.get_variations().count() == 5
    assert item.get_variations(TombstoneMode.INCLUDE).count() == 6
    assert list(item.get_variations(TombstoneMode.ONLY)) == [retired]

    row = Variation.objects.get(pk=retired.pk)
    assert snapshot(row) == before
    assert row.deleted_at is not None
    assert row.catalog_item == item
    assert row in item.variations.with_tombstoned()


def test_siblings_and_parent_untouched(generator, item, variations):
    siblings = [v for v in variations if v.pk != variations[0].pk]
    before = {v.pk: snapshot(Variation.objects.get(pk=v.pk)) for v in siblings}
    item_before = (item.name, item.sku, item.price, item.inventory_quantity)

    generator.delete_variation(variations[0])

    for sibling in siblings:
        row = Variation.objects.get(pk=sibling.pk)
        assert snapshot(row) == before[sibling.pk]
        assert row.deleted_at is None
    item.refresh_from_db()
    assert (item.name, item.sku, item.price, item.inventory_quantity) == item_before


def test_queryset_modes(variations):
    variations[0].tombstone()
    queryset = Variation.objects.filter(catalog_item=variations[0].catalog_item)
    assert queryset.in_mode(TombstoneMode.ACTIVE).count() == 5
    assert queryset.in_mode(TombstoneMode.INCLUDE).count() == 6
    assert queryset.in_mode(TombstoneMode.ONLY).count() == 1
    with pytest.raises(ValueError):
        queryset.in_mode('deleted')


def test_combination_can_be_regenerated_after_retirement(generator, item, color, size, variations):
    generator.delete_variation(variations[0])
    created = generator.generate_variations(item, [color.pk, size.pk])
    assert [v.options for v in created] == [variations[0].options]
    assert created[0].sku != variations[0].sku


def test_restore(generator, item, variations):
    generator.delete_variation(variations[1])
    restored = generator.restore_variation(variations[1])
    assert restored.deleted_at is None
    assert item.get_variations().count() == 6


def test_restore_conflicts_with_active_sibling(generator, item, color, size, variations):
    generator.delete_variation(variations[0])
    generator.generate_variations(item, [color.pk, size.pk])
    with pytest.raises(UniquenessViolation):
        generator.restore_variation(variations[0])
