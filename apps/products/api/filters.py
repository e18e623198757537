from django.db.models import F, Q
from django_filters import rest_framework as filters

from apps.products import conf
from apps.products.models import CatalogItem, Variation


class CatalogItemFilter(filters.FilterSet):
    """Filter for catalog items: category, price range, stock and attribute values."""

    category = filters.NumberFilter(field_name='categories__id', distinct=True)
    category_slug = filters.CharFilter(field_name='categories__slug', distinct=True)

    # Price filters
    min_price = filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = filters.NumberFilter(field_name='price', lookup_expr='lte')

    created_after = filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')

    # Attribute filters
    attribute = filters.CharFilter(method='filter_by_attribute')

    class Meta:
        model = CatalogItem
        fields = ['category', 'is_active', 'track_inventory', 'manufacturer', 'sku']

    def filter_by_attribute(self, queryset, name, value):
        """
        Filter by attribute in format: attribute_slug:value
        Example: ?attribute=material:algodao
        """
        if ':' not in value:
            return queryset

        attr_slug, attr_value = value.split(':', 1)
        return queryset.filter(
            Q(attribute_assignments__option__value=attr_value)
            | Q(attribute_assignments__custom_value=attr_value),
            attribute_assignments__attribute__slug=attr_slug,
        ).distinct()


class VariationFilter(filters.FilterSet):
    """Filter for variations with support for option values."""

    catalog_item = filters.NumberFilter(field_name='catalog_item__id')
    catalog_item_slug = filters.CharFilter(field_name='catalog_item__slug')

    # Price filters
    min_price = filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = filters.NumberFilter(field_name='price', lookup_expr='lte')

    # Stock filters
    in_stock = filters.BooleanFilter(method='filter_in_stock')
    low_stock = filters.BooleanFilter(method='filter_low_stock')

    # Option filters
    option = filters.CharFilter(method='filter_by_option')

    class Meta:
        model = Variation
        fields = ['catalog_item', 'sku', 'is_default', 'track_inventory']

    def filter_in_stock(self, queryset, name, value):
        in_stock = Q(track_inventory=False) | Q(inventory_quantity__gt=F('reserved_quantity'))
        if value is True:
            return queryset.filter(in_stock)
        elif value is False:
            return queryset.exclude(in_stock)
        return queryset

    def filter_low_stock(self, queryset, name, value):
        if value is True:
            return queryset.annotate(
                available=F('inventory_quantity') - F('reserved_quantity')
            ).filter(track_inventory=True, available__lte=conf.low_stock_threshold())
        return queryset

    def filter_by_option(self, queryset, name, value):
        """
        Filter by option in format: attribute_slug:value
        Example: ?option=color:Red
        """
        if ':' not in value:
            return queryset

        attr_slug, option_value = value.split(':', 1)
        return queryset.filter(**{f'options__{attr_slug}': option_value})
