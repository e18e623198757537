from rest_framework import serializers

from apps.products.models import (
    Attribute,
    AttributeOption,
    CatalogItem,
    Category,
    InventoryAdjustment,
    Variation,
)
from apps.products.services import UNLIMITED


# =============================================================================
# Attribute Serializers
# =============================================================================

class AttributeOptionSerializer(serializers.ModelSerializer):
    attribute_slug = serializers.CharField(source='attribute.slug', read_only=True)

    class Meta:
        model = AttributeOption
        fields = ['id', 'attribute', 'attribute_slug', 'value', 'code', 'sort_order']
        read_only_fields = ['attribute']


class AttributeOptionCreateSerializer(serializers.Serializer):
    value = serializers.CharField()
    code = serializers.CharField(required=False, allow_blank=True, default='')
    sort_order = serializers.IntegerField(required=False, min_value=0)


class AttributeSerializer(serializers.ModelSerializer):
    options = AttributeOptionSerializer(many=True, read_only=True)
    slug = serializers.SlugField(required=False)

    class Meta:
        model = Attribute
        fields = [
            'id', 'name', 'slug', 'data_type', 'is_configurable', 'is_required',
            'is_filterable', 'description', 'display_order', 'options',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']


# =============================================================================
# Variation Serializers
# =============================================================================

class VariationSerializer(serializers.ModelSerializer):
    """Variation as stored, with its computed stock figures."""
    catalog_item_name = serializers.CharField(source='catalog_item.name', read_only=True)
    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    available_quantity = serializers.SerializerMethodField()
    is_in_stock = serializers.BooleanField(read_only=True)
    is_tombstoned = serializers.BooleanField(read_only=True)

    class Meta:
        model = Variation
        fields = [
            'id', 'catalog_item', 'catalog_item_name', 'name', 'sku', 'options',
            'price', 'effective_price', 'currency_code', 'is_default',
            'track_inventory', 'inventory_quantity', 'reserved_quantity',
            'available_quantity', 'is_in_stock', 'is_tombstoned', 'deleted_at',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_available_quantity(self, obj):
        if not obj.track_inventory:
            return None
        return obj.available_inventory()


class VariationUpdateSerializer(serializers.Serializer):
    """Fields a client may change on an existing variation."""
    name = serializers.CharField(required=False, allow_blank=True)
    sku = serializers.CharField(required=False)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    currency_code = serializers.CharField(required=False, allow_blank=True, max_length=3)
    is_default = serializers.BooleanField(required=False)
    track_inventory = serializers.BooleanField(required=False)
    inventory_quantity = serializers.IntegerField(required=False)


class VariationCreateSerializer(VariationUpdateSerializer):
    options = serializers.DictField()


# =============================================================================
# Catalog Item Serializers
# =============================================================================

class CatalogItemSerializer(serializers.ModelSerializer):
    """Base catalog item serializer, used for writes."""
    slug = serializers.SlugField(required=False)
    categories = serializers.PrimaryKeyRelatedField(
        many=True, required=False, queryset=Category.objects.all()
    )

    class Meta:
        model = CatalogItem
        fields = [
            'id', 'name', 'slug', 'sku', 'description', 'manufacturer',
            'part_number', 'price', 'currency_code', 'categories', 'is_active',
            'track_inventory', 'inventory_quantity', 'reserved_quantity',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['inventory_quantity', 'reserved_quantity', 'created_at', 'updated_at']


class CatalogItemListSerializer(serializers.ModelSerializer):
    """Catalog item list with variation count and stock."""
    variant_count = serializers.IntegerField(read_only=True)
    available_quantity = serializers.SerializerMethodField()

    class Meta:
        model = CatalogItem
        fields = [
            'id', 'name', 'slug', 'sku', 'manufacturer', 'part_number', 'price',
            'currency_code', 'is_active', 'track_inventory', 'variant_count',
            'available_quantity', 'created_at'
        ]

    def get_available_quantity(self, obj):
        if not obj.track_inventory:
            return None
        return obj.available_inventory()


class CatalogItemDetailSerializer(CatalogItemListSerializer):
    """Full catalog item with active variations and attribute values."""
    variations = serializers.SerializerMethodField()
    configurable_attributes = serializers.SlugRelatedField(many=True, read_only=True, slug_field='slug')
    categories = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta(CatalogItemListSerializer.Meta):
        fields = CatalogItemListSerializer.Meta.fields + [
            'description', 'categories', 'configurable_attributes',
            'inventory_quantity', 'reserved_quantity', 'variations', 'updated_at'
        ]

    def get_variations(self, obj):
        return VariationSerializer(obj.get_variations(), many=True, context=self.context).data


# =============================================================================
# Inventory Serializers
# =============================================================================

class InventoryAdjustmentSerializer(serializers.ModelSerializer):
    owner_type = serializers.CharField(source='content_type.model', read_only=True)
    owner_id = serializers.IntegerField(source='object_id', read_only=True)
    user = serializers.StringRelatedField()

    class Meta:
        model = InventoryAdjustment
        fields = [
            'id', 'owner_type', 'owner_id', 'user', 'quantity_before',
            'quantity_after', 'adjustment_quantity', 'reserved_before',
            'reserved_after', 'reason', 'notes', 'reference_type',
            'reference_id', 'created_at'
        ]
        read_only_fields = fields


class QuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField()
    reference_id = serializers.CharField(required=False, allow_blank=True, default='')


class ReservationSerializer(QuantitySerializer):
    reference_type = serializers.CharField(required=False, allow_blank=True, max_length=50)


class AdjustmentSerializer(QuantitySerializer):
    reason = serializers.CharField(required=False, default=InventoryAdjustment.REASON_MANUAL, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    reference_type = serializers.CharField(required=False, allow_blank=True, default='', max_length=50)


class AvailabilitySerializer(serializers.Serializer):
    """Stock summary of one owner; ``available_quantity`` is null when untracked."""
    track_inventory = serializers.BooleanField()
    inventory_quantity = serializers.IntegerField()
    reserved_quantity = serializers.IntegerField()
    available_quantity = serializers.SerializerMethodField()
    is_low_stock = serializers.BooleanField()

    def get_available_quantity(self, obj):
        available = obj['available_quantity']
        return None if available == UNLIMITED else available


class GenerateVariationsSerializer(serializers.Serializer):
    attribute_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
