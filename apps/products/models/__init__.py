"""
Catalog models with typed attributes, generated variations and an
inventory ledger.

Model Hierarchy:
- Team: Tenant boundary for everything below
- Category: Hierarchical categories (Pintura > Tinta)
- Attribute: Typed attribute schema (Color: select, Weight: number)
- AttributeOption: Legal values of select attributes (Red, Blue)
- AttributeAssignment: Value of an attribute on an item or variation
- CatalogItem: Base item (e.g., "Camiseta Básica")
- Variation: Sellable unit per option combination, with its own stock
- InventoryAdjustment: Append-only audit record of every stock change
"""

from .team import Team
from .category import Category
from .attribute import Attribute, AttributeOption, AttributeAssignment
from .variation import Variation, TombstoneMode, options_digest
from .catalog_item import CatalogItem
from .inventory_adjustment import InventoryAdjustment, ImmutableRecordError

__all__ = [
    'Team',
    'Category',
    'Attribute',
    'AttributeOption',
    'AttributeAssignment',
    'CatalogItem',
    'Variation',
    'TombstoneMode',
    'options_digest',
    'InventoryAdjustment',
    'ImmutableRecordError',
]
