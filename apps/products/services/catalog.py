"""
Team-scoped entry point composing the attribute registry, the variation
generator and the inventory ledger.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction

from apps.products.exceptions import CatalogError, InvalidQuantity, NotFound, UniquenessViolation
from apps.products.models import Attribute, CatalogItem, Category, InventoryAdjustment, Variation

from .attribute_registry import AttributeRegistry
from .inventory_ledger import InventoryLedger
from .skus import sku_in_use
from .variation_generator import VariationGenerator

logger = logging.getLogger(__name__)

ITEM_FIELDS = (
    'name',
    'slug',
    'sku',
    'description',
    'manufacturer',
    'part_number',
    'price',
    'currency_code',
    'is_active',
    'track_inventory',
    'inventory_quantity',
    'reserved_quantity',
)

OWNER_TYPES = {
    'catalog_item': CatalogItem,
    'variation': Variation,
}


class CatalogService:
    """
    Catalog operations for one team on behalf of one user.

    Usage:
        service = CatalogService(team, request.user)
        item = service.create_item(name='Camiseta Básica', sku='CAM-001', price='49.90')
        service.generator.generate_variations(item, [color.pk, size.pk])
    """

    def __init__(self, team, user=None):
        self.team = team
        self.user = user
        self.registry = AttributeRegistry(team)
        self.generator = VariationGenerator(team, user)
        self.ledger = InventoryLedger(team, user)

    # Lookups

    def get_item(self, item_id) -> CatalogItem:
        return self.generator.get_item(item_id)

    def get_variation(self, variation_id) -> Variation:
        return self.generator.get_variation(variation_id)

    def get_attribute(self, attribute_id) -> Attribute:
        return self.registry.get_attribute(attribute_id)

    def resolve_owner(self, owner_type, owner_id):
        """Item or variation of this team addressed by type name and id."""
        if owner_type not in OWNER_TYPES:
            raise NotFound(f"Unknown owner type: {owner_type}", owner_type=owner_type)
        if owner_type == 'variation':
            return self.get_variation(owner_id)
        return self.get_item(owner_id)

    # Items

    def _clean_item_fields(self, fields, item=None):
        unknown = sorted(set(fields) - set(ITEM_FIELDS) - {'categories'})
        if unknown:
            raise CatalogError(f"Unknown catalog item field(s): {', '.join(unknown)}", fields=unknown)

        data = dict(fields)
        if 'name' in data and not (data['name'] or '').strip():
            raise CatalogError('Name cannot be empty')
        if 'price' in data:
            try:
                data['price'] = Decimal(str(data['price']))
            except InvalidOperation:
                raise CatalogError(f"Invalid price: {data['price']!r}")
            if data['price'] < 0:
                raise CatalogError('Price cannot be negative')
        for field in ('inventory_quantity', 'reserved_quantity'):
            if field in data:
                value = data[field]
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    raise InvalidQuantity(f"{field} must be a non-negative integer", field=field)
        if data.get('sku') == '':
            data['sku'] = None
        if data.get('sku') and sku_in_use(self.team, data['sku'], exclude=item):
            raise UniquenessViolation(f"SKU '{data['sku']}' is already in use", sku=data['sku'])
        if data.get('slug'):
            clash = CatalogItem.objects.filter(team=self.team, slug=data['slug'])
            if item is not None:
                clash = clash.exclude(pk=item.pk)
            if clash.exists():
                raise UniquenessViolation(f"Slug '{data['slug']}' is already in use", slug=data['slug'])
        return data

    def _set_categories(self, item, categories):
        category_ids = [c.pk if isinstance(c, Category) else c for c in categories]
        found = list(Category.objects.filter(team=self.team, pk__in=category_ids))
        if len(found) != len(set(category_ids)):
            raise NotFound('One or more categories not found', categories=category_ids)
        item.categories.set(found)

    def create_item(self, **fields) -> CatalogItem:
        categories = fields.pop('categories', None)
        data = self._clean_item_fields(fields)
        if not data.get('name'):
            raise CatalogError('Name is required')

        with transaction.atomic():
            item = CatalogItem.objects.create(team=self.team, **data)
            if categories:
                self._set_categories(item, categories)

        logger.info('Catalog item created', extra={'team_id': self.team.pk, 'item_id': item.pk})
        return item

    def update_item(self, item, **fields) -> CatalogItem:
        """
        Change the item's own fields. Variations keep their own copies of
        price, sku and stock and are not touched. A new quantity on a tracked
        item is written through the ledger; reservations cannot be set here.
        """
        item = self.get_item(item)
        if 'reserved_quantity' in fields:
            raise CatalogError(
                'Reservations change only through reserve and release', fields=['reserved_quantity']
            )
        categories = fields.pop('categories', None)
        data = self._clean_item_fields(fields, item=item)
        new_quantity = data.pop('inventory_quantity', None)

        with transaction.atomic():
            locked = CatalogItem.objects.select_for_update().get(pk=item.pk)
            for field, value in data.items():
                setattr(locked, field, value)
            if data:
                locked.save(update_fields=[*data, 'updated_at'])

            if new_quantity is not None and new_quantity != locked.inventory_quantity:
                if locked.track_inventory:
                    self.ledger.adjust_inventory(
                        locked,
                        new_quantity - locked.inventory_quantity,
                        reason=InventoryAdjustment.REASON_MANUAL,
                        notes='Quantity set on item update',
                    )
                else:
                    locked.inventory_quantity = new_quantity
                    locked.save(update_fields=['inventory_quantity', 'updated_at'])

            if categories is not None:
                self._set_categories(locked, categories)

        locked.refresh_from_db()
        return locked
