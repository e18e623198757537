from .attribute_registry import AttributeRegistry
from .variation_generator import VariationGenerator, cartesian_product
from .inventory_ledger import InventoryLedger, UNLIMITED
from .catalog import CatalogService

__all__ = [
    'AttributeRegistry',
    'VariationGenerator',
    'cartesian_product',
    'InventoryLedger',
    'UNLIMITED',
    'CatalogService',
]
