from .serializers import (
    AttributeSerializer,
    AttributeOptionSerializer,
    CatalogItemSerializer,
    CatalogItemListSerializer,
    CatalogItemDetailSerializer,
    VariationSerializer,
    InventoryAdjustmentSerializer,
)

__all__ = [
    'AttributeSerializer',
    'AttributeOptionSerializer',
    'CatalogItemSerializer',
    'CatalogItemListSerializer',
    'CatalogItemDetailSerializer',
    'VariationSerializer',
    'InventoryAdjustmentSerializer',
]
