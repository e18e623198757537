import pytest
from django.test import override_settings

from apps.products.exceptions import (
    BulkAssignmentError,
    CatalogError,
    InvalidAttributeValue,
    NotFound,
    UniquenessViolation,
)
from apps.products.models import Attribute, AttributeAssignment, AttributeOption
from apps.products.services import AttributeRegistry


@pytest.fixture
def weight(registry):
    return registry.define_attribute('Weight', Attribute.DATA_TYPE_NUMBER)


@pytest.fixture
def organic(registry):
    return registry.define_attribute('Organic', Attribute.DATA_TYPE_BOOLEAN)


@pytest.fixture
def tags(registry):
    attribute = registry.define_attribute('Tags', Attribute.DATA_TYPE_MULTI_SELECT)
    for value in ('Novo', 'Promo', 'Verão'):
        registry.define_option(attribute, value)
    return attribute


class TestSchema:

    def test_define_attribute_derives_slug(self, registry, team):
        attribute = registry.define_attribute('Cor Principal', Attribute.DATA_TYPE_SELECT)
        assert attribute.slug == 'cor-principal'
        assert attribute.team == team

    def test_duplicate_slug_rejected(self, registry, color):
        with pytest.raises(UniquenessViolation):
            registry.define_attribute('Color', Attribute.DATA_TYPE_SELECT)

    def test_same_slug_allowed_in_another_team(self, color, other_team):
        attribute = AttributeRegistry(other_team).define_attribute('Color', Attribute.DATA_TYPE_SELECT)
        assert attribute.slug == color.slug

    def test_unknown_data_type(self, registry):
        with pytest.raises(CatalogError):
            registry.define_attribute('Data', 'date')

    def test_options_append_in_sort_order(self, registry, size):
        assert registry.get_option_values(size) == ['S', 'M', 'L']
        registry.define_option(size, 'XL')
        assert list(size.options.values_list('sort_order', flat=True)) == [0, 1, 2, 3]
        assert registry.get_option_values(size) == ['S', 'M', 'L', 'XL']

    def test_duplicate_option_rejected(self, registry, color):
        with pytest.raises(UniquenessViolation):
            registry.define_option(color, 'Red')

    def test_get_attribute_from_other_team_not_found(self, color, other_team):
        with pytest.raises(NotFound):
            AttributeRegistry(other_team).get_attribute(color.pk)


class TestOptionCache:

    def test_new_option_visible_after_cached_read(self, registry, color):
        assert registry.get_option_values(color) == ['Red', 'Blue']
        AttributeOption.objects.create(attribute=color, value='Green', sort_order=5)
        assert registry.get_option_values(color) == ['Red', 'Blue', 'Green']

    def test_deleted_option_no_longer_valid(self, registry, color):
        assert registry.validate_value(color, 'Blue')
        color.options.get(value='Blue').delete()
        assert not registry.validate_value(color, 'Blue')


class TestValidation:

    def test_number(self, registry, weight):
        assert registry.validate_value(weight, 180)
        assert registry.validate_value(weight, '180.5')
        assert not registry.validate_value(weight, '180g')

    def test_boolean(self, registry, organic):
        assert registry.validate_value(organic, 'true')
        assert not registry.validate_value(organic, 'yes')

    def test_select_is_case_sensitive(self, registry, color):
        assert registry.validate_value(color, 'Red')
        assert not registry.validate_value(color, 'RED')

    def test_is_valid_value_is_an_alias(self, registry, color):
        assert registry.is_valid_value(color, 'Blue') is registry.validate_value(color, 'Blue')

    def test_empty_value_on_required_attribute_passes_type_check(self, registry):
        attribute = registry.define_attribute('Marca', Attribute.DATA_TYPE_TEXT, is_required=True)
        assert registry.validate_value(attribute, '')

    def test_changed_data_type_applies_to_new_values_only(self, registry, item, weight):
        registry.assign_attribute(item, weight, 180)
        weight.data_type = Attribute.DATA_TYPE_BOOLEAN
        weight.save()

        assert registry.get_value(item, weight) == 180
        assert not registry.validate_value(weight, 200)
        assert registry.validate_assignments(item) == ["Invalid value for attribute 'Weight': 180"]


class TestAssignments:

    def test_select_stores_option_reference(self, registry, item, color):
        assignment = registry.assign_attribute(item, color, 'Red')
        assert assignment.option.value == 'Red'
        assert assignment.custom_value is None
        assert registry.get_value(item, color) == 'Red'

    def test_multi_select_stores_custom_list(self, registry, item, tags):
        assignment = registry.assign_attribute(item, tags, ['Novo', 'Promo'])
        assert assignment.option is None
        assert assignment.custom_value == ['Novo', 'Promo']
        assert registry.get_display_value(assignment) == 'Novo, Promo'

    def test_scalar_types_store_custom_value(self, registry, item, weight, organic):
        registry.assign_attribute(item, weight, '180.5')
        registry.assign_attribute(item, organic, True)
        assert registry.get_value(item, weight) == '180.5'
        assert registry.get_value(item, organic) is True

    def test_invalid_value_rejected_without_write(self, registry, item, color):
        with pytest.raises(InvalidAttributeValue):
            registry.assign_attribute(item, color, 'Green')
        assert registry.get_assignment(item, color) is None

    def test_assignment_overwrites_existing(self, registry, item, color):
        registry.assign_attribute(item, color, 'Red')
        registry.assign_attribute(item, color, 'Blue')
        assert item.attribute_assignments.count() == 1
        assert registry.get_value(item, color) == 'Blue'

    def test_variations_hold_their_own_values(self, registry, item, variations, weight):
        variation = variations[0]
        registry.assign_attribute(variation, weight, 200)
        registry.assign_attribute(item, weight, 180)
        assert registry.get_value(variation, weight) == 200
        assert registry.get_value(item, weight) == 180

    def test_owner_from_other_team_not_found(self, item, color, other_team):
        with pytest.raises(NotFound):
            AttributeRegistry(other_team).assign_attribute(item, color.pk, 'Red')

    def test_bulk_assignment_applies_valid_entries(self, registry, item, color, weight, organic):
        with pytest.raises(BulkAssignmentError) as excinfo:
            registry.assign_attributes(item, {
                color.pk: 'Red',
                weight.pk: 'heavy',
                organic.pk: 'false',
            })

        assert set(excinfo.value.errors) == {weight.pk}
        assert registry.get_value(item, color) == 'Red'
        assert registry.get_value(item, organic) == 'false'
        assert registry.get_value(item, weight) is None

    def test_bulk_assign_across_items(self, registry, service, item, color, weight):
        other = service.create_item(name='Camiseta Polo', sku='POL')
        assigned = registry.bulk_assign([item, other], {color.pk: 'Blue', weight.pk: 180})

        assert len(assigned) == 4
        for owner in (item, other):
            assert registry.get_value(owner, color) == 'Blue'
            assert registry.get_value(owner, weight) == 180

    def test_bulk_assign_rolls_back_every_item(self, registry, service, item, color, weight):
        other = service.create_item(name='Camiseta Polo', sku='POL')
        with pytest.raises(BulkAssignmentError):
            registry.bulk_assign([item, other], {color.pk: 'Blue', weight.pk: 'pesado'})

        assert not AttributeAssignment.objects.filter(attribute=color).exists()

    def test_remove_attribute(self, registry, item, color, weight):
        registry.assign_attribute(item, color, 'Red')
        registry.assign_attribute(item, weight, 10)

        assert registry.remove_attribute(item, color) is True
        assert registry.remove_attribute(item, color) is False
        assert registry.get_value(item, weight) == 10

    def test_update_attributes_replaces_set(self, registry, item, color, weight, organic):
        registry.assign_attributes(item, {color.pk: 'Red', weight.pk: 10})
        registry.update_attributes(item, {weight.pk: 12, organic.pk: True})

        assert registry.get_value(item, color) is None
        assert registry.get_value(item, weight) == 12
        assert registry.get_value(item, organic) is True

    def test_copy_attributes(self, registry, item, variations, color, tags):
        registry.assign_attribute(item, color, 'Blue')
        registry.assign_attribute(item, tags, ['Verão'])
        registry.copy_attributes(item, variations[0])
        assert registry.get_value(variations[0], color) == 'Blue'
        assert registry.get_value(variations[0], tags) == ['Verão']

    def test_attributes_for_display(self, registry, item, color, tags):
        registry.assign_attribute(item, color, 'Red')
        registry.assign_attribute(item, tags, ['Novo', 'Verão'])
        display = {attribute.slug: (value, text) for attribute, value, text in registry.get_attributes_for_display(item)}
        assert display == {
            'color': ('Red', 'Red'),
            'tags': (['Novo', 'Verão'], 'Novo, Verão'),
        }

    def test_deleting_item_removes_its_assignments(self, registry, service, color):
        item = service.create_item(name='Boné', sku='BON')
        registry.assign_attribute(item, color, 'Red')
        item.delete()
        assert not AttributeAssignment.objects.filter(object_id=item.pk, attribute=color).exists()


class TestRequiredPolicy:

    @pytest.fixture
    def brand(self, registry):
        return registry.define_attribute('Marca', Attribute.DATA_TYPE_TEXT, is_required=True)

    def test_empty_required_value_accepted_by_default(self, registry, item, brand):
        registry.assign_attribute(item, brand, '')
        assert registry.validate_assignments(item) == ["Required attribute 'Marca' is missing a value"]

    @override_settings(PRODUCTS_ENFORCE_REQUIRED_ATTRIBUTES=True)
    def test_empty_required_value_rejected_when_enforced(self, registry, item, brand):
        with pytest.raises(InvalidAttributeValue):
            registry.assign_attribute(item, brand, '')

    def test_unassigned_required_attribute_reported(self, registry, item, brand):
        assert registry.validate_assignments(item) == ["Required attribute 'Marca' is not assigned"]


class TestQueries:

    def test_find_owners_with_value(self, registry, service, item, color):
        other = service.create_item(name='Boné', sku='BON')
        registry.assign_attribute(item, color, 'Red')
        registry.assign_attribute(other, color, 'Blue')
        assert list(registry.find_owners_with_value(color, 'Red')) == [item]

    def test_unique_values(self, registry, service, item, color):
        material = registry.define_attribute('Tecido', Attribute.DATA_TYPE_TEXT)
        other = service.create_item(name='Boné', sku='BON')
        registry.assign_attribute(item, material, 'Algodão')
        registry.assign_attribute(other, material, 'Algodão')
        assert registry.get_unique_values(material) == ['Algodão']
        assert registry.get_unique_values(color) == ['Red', 'Blue']
