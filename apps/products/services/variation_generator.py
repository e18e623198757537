"""
Variation generation and maintenance.

Variations are generated as the cartesian product of the option sets of the
chosen configurable attributes: attributes in the order the caller gives
them, options in their sort order.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Sequence, Tuple

from django.db import IntegrityError, transaction
from django.db.models import Sum

from apps.products.exceptions import (
    CatalogError,
    InvalidAttributeValue,
    InvalidQuantity,
    NotFound,
    UniquenessViolation,
)
from apps.products.models import (
    Attribute,
    CatalogItem,
    InventoryAdjustment,
    TombstoneMode,
    Variation,
    options_digest,
)

from .attribute_registry import AttributeRegistry
from .inventory_ledger import InventoryLedger
from .skus import sku_in_use

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    'name',
    'sku',
    'price',
    'currency_code',
    'is_default',
    'track_inventory',
    'inventory_quantity',
)

# Identity of a variation; silently dropped from updates
PROTECTED_FIELDS = ('id', 'pk', 'team', 'team_id', 'catalog_item', 'catalog_item_id',
                    'options', 'options_key', 'deleted_at')


def cartesian_product(value_sets: Sequence[Tuple[str, Sequence[Any]]]) -> List[Dict[str, Any]]:
    """
    All combinations picking one value per (slug, values) pair.

    The first pair varies slowest:
        [('color', ['Red', 'Blue']), ('size', ['S', 'M'])]
        -> Red/S, Red/M, Blue/S, Blue/M
    """
    combinations = [{}]
    for slug, values in value_sets:
        combinations = [
            {**combination, slug: value}
            for combination in combinations
            for value in values
        ]
    return combinations


class VariationGenerator:
    """
    Creates, updates and retires the variations of a team's catalog items.
    """

    def __init__(self, team, user=None):
        self.team = team
        self.user = user
        self.registry = AttributeRegistry(team)
        self.ledger = InventoryLedger(team, user)

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_item(self, item) -> CatalogItem:
        item_id = item.pk if isinstance(item, CatalogItem) else item
        try:
            return CatalogItem.objects.get(pk=item_id, team=self.team)
        except (CatalogItem.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Catalog item {item_id} not found", item_id=item_id)

    def get_variation(self, variation) -> Variation:
        """Resolve a variation instance or id, retired ones included."""
        variation_id = variation.pk if isinstance(variation, Variation) else variation
        try:
            return Variation.objects.select_related('catalog_item').get(pk=variation_id, team=self.team)
        except (Variation.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Variation {variation_id} not found", variation_id=variation_id)

    def find_by_options(self, item, options: Dict[str, Any]):
        item = self.get_item(item)
        return item.variations.active().filter(options_key=options_digest(options)).first()

    # =========================================================================
    # Generation
    # =========================================================================

    def generate_variations(self, item, attribute_ids: Sequence[Any]) -> List[Variation]:
        """
        Create one variation per option combination of the given attributes.

        Attributes without options, and attributes not marked configurable,
        take no part in the combinations. Combinations already held by an
        active variation are skipped, so repeating a call creates nothing new.
        Returns the variations created by this call.
        """
        item = self.get_item(item)
        attributes = [self.registry.get_attribute(attribute_id) for attribute_id in attribute_ids]

        value_sets = []
        contributing = []
        seen = set()
        for attribute in attributes:
            if attribute.pk in seen:
                continue
            seen.add(attribute.pk)
            if not attribute.is_configurable:
                logger.info('Skipping non-configurable attribute %s', attribute.slug)
                continue
            values = self.registry.get_option_values(attribute)
            if not values:
                continue
            value_sets.append((attribute.slug, values))
            contributing.append(attribute)

        if not value_sets:
            return []

        combinations = cartesian_product(value_sets)
        created = []
        with transaction.atomic():
            # Serializes concurrent generation for the same item
            item = CatalogItem.objects.select_for_update().get(pk=item.pk)
            existing = set(item.variations.active().values_list('options_key', flat=True))

            for combination in combinations:
                key = options_digest(combination)
                if key in existing:
                    continue
                variation = Variation.objects.create(
                    team=self.team,
                    catalog_item=item,
                    name=self._variation_name(item, combination),
                    sku=self._variation_sku(item, combination),
                    price=item.price,
                    currency_code=item.currency_code,
                    track_inventory=item.track_inventory,
                    inventory_quantity=0,
                    options=combination,
                )
                existing.add(key)
                created.append(variation)

            item.configurable_attributes.add(*contributing)

        logger.info('Variations generated', extra={
            'team_id': self.team.pk,
            'item_id': item.pk,
            'combinations': len(combinations),
            'created_count': len(created),
            'skipped_count': len(combinations) - len(created),
        })
        return created

    def create_variation(self, item, options: Dict[str, Any], **fields) -> Variation:
        """
        Create a single variation for an explicit options map. Every key must
        be the slug of a configurable attribute of the team and every value
        must be valid for it.
        """
        item = self.get_item(item)
        attributes = self._validate_options(options)
        data = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS}
        self._check_field_values(data)

        with transaction.atomic():
            item = CatalogItem.objects.select_for_update().get(pk=item.pk)
            if item.variations.active().filter(options_key=options_digest(options)).exists():
                raise UniquenessViolation(
                    f"A variation with options {options} already exists for {item.name}",
                    options=options,
                )
            sku = data.pop('sku', None) or self._variation_sku(item, options)
            if sku_in_use(self.team, sku):
                raise UniquenessViolation(f"SKU '{sku}' is already in use", sku=sku)

            is_default = data.pop('is_default', False)
            variation = Variation.objects.create(
                team=self.team,
                catalog_item=item,
                options=dict(options),
                sku=sku,
                name=data.pop('name', '') or self._variation_name(item, options),
                price=data.pop('price', item.price),
                currency_code=data.pop('currency_code', item.currency_code),
                track_inventory=data.pop('track_inventory', item.track_inventory),
                **data,
            )
            item.configurable_attributes.add(*attributes)
            if is_default:
                self.set_default(variation)
        return variation

    def _validate_options(self, options: Dict[str, Any]) -> List[Attribute]:
        if not options:
            raise CatalogError('Variation options cannot be empty')
        attributes = []
        for slug, value in options.items():
            attribute = Attribute.objects.filter(team=self.team, slug=slug).first()
            if attribute is None:
                raise NotFound(f"Attribute '{slug}' not found", attribute=slug)
            if not attribute.is_configurable:
                raise InvalidAttributeValue(
                    attribute, value, f"Attribute '{slug}' is not configurable"
                )
            if not self.registry.validate_value(attribute, value):
                raise InvalidAttributeValue(attribute, value)
            attributes.append(attribute)
        return attributes

    # =========================================================================
    # Maintenance
    # =========================================================================

    def update_variation(self, variation, fields: Dict[str, Any]) -> Variation:
        """
        Change the variation's own fields. Parent, siblings, options and
        identity are never touched. A new quantity on a tracked variation is
        written through the ledger so it is audited.
        """
        variation = self.get_variation(variation)
        changes = {key: value for key, value in fields.items() if key not in PROTECTED_FIELDS}
        unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
        if unknown:
            raise CatalogError(f"Unknown variation field(s): {', '.join(unknown)}", fields=unknown)
        self._check_field_values(changes)

        if 'sku' in changes and changes['sku'] != variation.sku:
            if not changes['sku']:
                raise CatalogError('SKU cannot be empty')
            if sku_in_use(self.team, changes['sku'], exclude=variation):
                raise UniquenessViolation(f"SKU '{changes['sku']}' is already in use", sku=changes['sku'])

        make_default = changes.pop('is_default', None)
        new_quantity = changes.pop('inventory_quantity', None)

        with transaction.atomic():
            locked = Variation.objects.select_for_update().get(pk=variation.pk)
            for field, value in changes.items():
                setattr(locked, field, value)
            if changes:
                locked.save(update_fields=[*changes, 'updated_at'])

            if new_quantity is not None and new_quantity != locked.inventory_quantity:
                if locked.track_inventory:
                    self.ledger.adjust_inventory(
                        locked,
                        new_quantity - locked.inventory_quantity,
                        reason=InventoryAdjustment.REASON_MANUAL,
                        notes='Quantity set on variation update',
                    )
                else:
                    locked.inventory_quantity = new_quantity
                    locked.save(update_fields=['inventory_quantity', 'updated_at'])

            if make_default:
                self.set_default(locked)
            elif make_default is False and locked.is_default:
                locked.is_default = False
                locked.save(update_fields=['is_default', 'updated_at'])

        locked.refresh_from_db()
        return locked

    def _check_field_values(self, data: Dict[str, Any]):
        if 'inventory_quantity' in data:
            value = data['inventory_quantity']
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidQuantity('inventory_quantity must be a non-negative integer', field='inventory_quantity')
        if data.get('price') is not None:
            try:
                price = Decimal(str(data['price']))
            except InvalidOperation:
                raise CatalogError(f"Invalid price: {data['price']!r}")
            if price < 0:
                raise CatalogError('Price cannot be negative')
            data['price'] = price

    def delete_variation(self, variation) -> Variation:
        """Retire the variation with a tombstone; the row stays."""
        variation = self.get_variation(variation)
        variation.tombstone()
        logger.info('Variation retired', extra={
            'team_id': self.team.pk,
            'variation_id': variation.pk,
            'item_id': variation.catalog_item_id,
        })
        return variation

    def restore_variation(self, variation) -> Variation:
        variation = self.get_variation(variation)
        if not variation.is_tombstoned:
            return variation
        with transaction.atomic():
            clash = (
                Variation.objects.active()
                .filter(catalog_item_id=variation.catalog_item_id, options_key=variation.options_key)
                .exclude(pk=variation.pk)
                .exists()
            )
            if clash:
                raise UniquenessViolation(
                    f"An active variation with options {variation.options} already exists",
                    options=variation.options,
                )
            try:
                variation.restore()
            except IntegrityError:
                raise UniquenessViolation(
                    f"An active variation with options {variation.options} already exists",
                    options=variation.options,
                )
        return variation

    def set_default(self, variation) -> Variation:
        """Make ``variation`` the only default among its siblings."""
        variation = self.get_variation(variation)
        with transaction.atomic():
            Variation.objects.filter(catalog_item_id=variation.catalog_item_id) \
                .exclude(pk=variation.pk) \
                .update(is_default=False)
            if not variation.is_default:
                variation.is_default = True
                variation.save(update_fields=['is_default', 'updated_at'])
        return variation

    def bulk_update(self, item, rows: List[Dict[str, Any]]) -> List[Variation]:
        """
        Rows with an ``id`` update that variation of ``item``; rows without
        one create a variation from their ``options``.
        """
        item = self.get_item(item)
        results = []
        with transaction.atomic():
            for row in rows:
                row = dict(row)
                variation_id = row.pop('id', None)
                if variation_id is not None:
                    variation = self.get_variation(variation_id)
                    if variation.catalog_item_id != item.pk:
                        raise NotFound(f"Variation {variation_id} not found for {item.name}")
                    results.append(self.update_variation(variation, row))
                else:
                    options = row.pop('options', None)
                    if not options:
                        raise CatalogError('Options are required for new variations')
                    results.append(self.create_variation(item, options, **row))
        return results

    def get_stats(self, item) -> Dict[str, Any]:
        item = self.get_item(item)
        active = item.get_variations(TombstoneMode.ACTIVE)
        totals = active.aggregate(
            inventory=Sum('inventory_quantity'),
            reserved=Sum('reserved_quantity'),
        )
        return {
            'total_variations': item.get_variations(TombstoneMode.INCLUDE).count(),
            'active_variations': active.count(),
            'retired_variations': item.get_variations(TombstoneMode.ONLY).count(),
            'total_inventory': totals['inventory'] or 0,
            'total_reserved': totals['reserved'] or 0,
            'total_available': sum(v.available_inventory() for v in active),
        }

    # =========================================================================
    # Naming
    # =========================================================================

    def _variation_name(self, item, combination: Dict[str, Any]) -> str:
        parts = [item.name] + [str(value) for value in combination.values()]
        return ' - '.join(parts)

    def _variation_sku(self, item, combination: Dict[str, Any]) -> str:
        """
        Parent sku (or ITEM-<id>) plus the first three characters of each
        value, with a counter appended until unique within the team.
        """
        base_sku = item.sku or f'ITEM-{item.pk}'
        suffix = ''.join(f'-{str(value)[:3].upper()}' for value in combination.values())
        proposed = f'{base_sku}{suffix}'
        sku = proposed
        counter = 1
        while sku_in_use(self.team, sku):
            sku = f'{proposed}-{counter}'
            counter += 1
        return sku
