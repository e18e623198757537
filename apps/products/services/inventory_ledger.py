"""
Stock ledger for catalog items and variations.

Every mutation runs in one transaction that locks the owner row, re-reads
its counters, applies the clamped change and writes the audit record. Two
operations on the same owner therefore serialize; operations on different
owners do not block each other.
"""

import logging
import sys
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.db.models import Exists, F, OuterRef

from apps.products import conf
from apps.products.exceptions import (
    InsufficientInventory,
    InvalidQuantity,
    InventoryTrackingDisabled,
    NotFound,
    StockHeldByVariations,
)
from apps.products.models import CatalogItem, InventoryAdjustment, Variation

logger = logging.getLogger(__name__)

# Available quantity reported for owners that do not track inventory
UNLIMITED = sys.maxsize


def _check_positive(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(f"Quantity must be a positive integer, got {quantity!r}", quantity=quantity)


class InventoryLedger:
    """
    Reservation, sale, return and free-form adjustment of stock for the
    catalog items and variations of one team.
    """

    def __init__(self, team, user=None):
        self.team = team
        self.user = user if getattr(user, 'is_authenticated', False) else None

    # =========================================================================
    # Locking / bookkeeping
    # =========================================================================

    def _lock(self, owner):
        """Re-read ``owner`` with a row lock. Must run inside a transaction."""
        if not isinstance(owner, (CatalogItem, Variation)):
            raise TypeError(f"Inventory is kept for catalog items and variations, not {type(owner).__name__}")
        try:
            return type(owner).objects.select_for_update().get(pk=owner.pk, team=self.team)
        except type(owner).DoesNotExist:
            raise NotFound(
                f"{owner._meta.verbose_name} {owner.pk} not found",
                owner_type=owner._meta.model_name,
                owner_id=owner.pk,
            )

    def _lock_for_mutation(self, owner):
        """
        Lock ``owner`` and make sure its own counters may change: it must
        track inventory, and an item must not have active variations.
        """
        locked = self._lock(owner)
        if not locked.track_inventory:
            raise InventoryTrackingDisabled(locked)
        if isinstance(locked, CatalogItem) and locked.has_variants():
            raise StockHeldByVariations(locked)
        return locked

    @staticmethod
    def _sync(owner, locked):
        """Copy fresh counters back onto the caller's instance."""
        owner.inventory_quantity = locked.inventory_quantity
        owner.reserved_quantity = locked.reserved_quantity
        owner.track_inventory = locked.track_inventory
        owner.updated_at = locked.updated_at

    def _record(
        self,
        locked,
        quantity_delta: int,
        reserved_delta: int,
        reason: str,
        notes: str = '',
        reference_type: str = '',
        reference_id: str = '',
    ) -> InventoryAdjustment:
        """
        Apply clamped deltas to the locked owner and write the matching
        adjustment. The recorded delta is the one actually applied.
        """
        quantity_before = locked.inventory_quantity
        quantity_after = max(0, quantity_before + quantity_delta)
        reserved_before = locked.reserved_quantity
        reserved_after = max(0, reserved_before + reserved_delta)

        locked.inventory_quantity = quantity_after
        locked.reserved_quantity = reserved_after
        locked.save(update_fields=['inventory_quantity', 'reserved_quantity', 'updated_at'])

        adjustment = InventoryAdjustment.objects.create(
            team=self.team,
            owner=locked,
            user=self.user,
            quantity_before=quantity_before,
            quantity_after=quantity_after,
            adjustment_quantity=quantity_after - quantity_before,
            reserved_before=reserved_before,
            reserved_after=reserved_after,
            reason=reason,
            notes=notes or '',
            reference_type=reference_type or '',
            reference_id='' if reference_id is None else str(reference_id),
        )
        logger.info('Inventory %s', reason.lower(), extra={
            'team_id': self.team.pk,
            'owner_type': locked._meta.model_name,
            'owner_id': locked.pk,
            'quantity_before': quantity_before,
            'quantity_after': quantity_after,
            'reserved_after': reserved_after,
            'reference_type': reference_type,
            'reference_id': reference_id,
        })
        return adjustment

    def _warn_if_low(self, owner):
        if self.is_low_stock(owner):
            logger.warning('Low stock detected', extra={
                'team_id': self.team.pk,
                'owner_type': owner._meta.model_name,
                'owner_id': owner.pk,
                'available_quantity': self.get_available_quantity(owner),
            })

    # =========================================================================
    # Reads
    # =========================================================================

    def get_available_quantity(self, owner) -> int:
        """
        max(0, quantity - reserved); for an item with active variations, the
        sum of their available quantities. UNLIMITED when not tracked.
        """
        if not owner.track_inventory:
            return UNLIMITED
        return owner.available_inventory()

    def get_adjustment_history(self, owner, limit: Optional[int] = 50):
        """Adjustments of ``owner``, most recent first."""
        history = (
            InventoryAdjustment.objects
            .for_owner(owner)
            .filter(team=self.team)
            .select_related('user')
            .order_by('-created_at', '-id')
        )
        if limit is not None:
            history = history[:limit]
        return history

    def is_low_stock(self, owner, threshold: Optional[int] = None) -> bool:
        if not owner.track_inventory:
            return False
        if threshold is None:
            threshold = conf.low_stock_threshold()
        return self.get_available_quantity(owner) <= threshold

    def get_low_stock_items(self, threshold: Optional[int] = None) -> List[Any]:
        """Tracked, active items and variations at or below the threshold."""
        if threshold is None:
            threshold = conf.low_stock_threshold()
        items = list(
            CatalogItem.objects
            .filter(team=self.team, track_inventory=True, is_active=True)
            .exclude(Exists(Variation.objects.active().filter(catalog_item=OuterRef('pk'))))
            .annotate(available=F('inventory_quantity') - F('reserved_quantity'))
            .filter(available__lte=threshold)
        )
        variations = list(
            Variation.objects
            .active()
            .filter(team=self.team, track_inventory=True, catalog_item__is_active=True)
            .annotate(available=F('inventory_quantity') - F('reserved_quantity'))
            .filter(available__lte=threshold)
            .select_related('catalog_item')
        )
        return items + variations

    # =========================================================================
    # Mutations
    # =========================================================================

    def adjust_inventory(
        self,
        owner,
        quantity: int,
        reason: str = InventoryAdjustment.REASON_MANUAL,
        notes: str = '',
        reference_type: str = '',
        reference_id: str = '',
    ) -> InventoryAdjustment:
        """
        Apply a signed change to the owner's quantity, floored at zero, and
        record it.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantity(f"Quantity must be an integer, got {quantity!r}", quantity=quantity)

        with transaction.atomic():
            locked = self._lock_for_mutation(owner)

            if conf.deduplicate_references() and reference_id:
                existing = (
                    InventoryAdjustment.objects
                    .for_owner(locked)
                    .filter(reference_type=reference_type or '', reference_id=str(reference_id))
                    .first()
                )
                if existing is not None:
                    logger.info('Duplicate inventory reference ignored', extra={
                        'owner_type': locked._meta.model_name,
                        'owner_id': locked.pk,
                        'reference_type': reference_type,
                        'reference_id': reference_id,
                    })
                    self._sync(owner, locked)
                    return existing

            adjustment = self._record(
                locked, quantity, 0, reason,
                notes=notes, reference_type=reference_type, reference_id=reference_id,
            )
            self._sync(owner, locked)

        self._warn_if_low(locked)
        return adjustment

    def decrement_for_sale(self, owner, quantity: int, sale_reference_id: str) -> InventoryAdjustment:
        """Remove sold units. Reservations are left untouched."""
        _check_positive(quantity)
        return self.adjust_inventory(
            owner,
            -quantity,
            reason=InventoryAdjustment.REASON_SALE,
            notes='Inventory decremented for sale',
            reference_type='sale',
            reference_id=sale_reference_id,
        )

    def increment_for_return(self, owner, quantity: int, return_reference_id: str) -> InventoryAdjustment:
        _check_positive(quantity)
        return self.adjust_inventory(
            owner,
            quantity,
            reason=InventoryAdjustment.REASON_RETURN,
            notes='Inventory incremented for return',
            reference_type='return',
            reference_id=return_reference_id,
        )

    def reserve_inventory(
        self,
        owner,
        quantity: int,
        reference_type: str = 'reservation',
        reference_id: str = '',
    ) -> bool:
        """
        Hold ``quantity`` units without changing the quantity on hand.
        Returns False, writing nothing, when fewer units are available.
        """
        _check_positive(quantity)
        with transaction.atomic():
            locked = self._lock_for_mutation(owner)
            if self.get_available_quantity(locked) < quantity:
                logger.info('Reservation rejected', extra={
                    'owner_type': locked._meta.model_name,
                    'owner_id': locked.pk,
                    'requested': quantity,
                })
                self._sync(owner, locked)
                return False
            self._record(
                locked, 0, quantity, InventoryAdjustment.REASON_RESERVATION,
                notes=f'Reserved {quantity}',
                reference_type=reference_type, reference_id=reference_id,
            )
            self._sync(owner, locked)
        return True

    def release_inventory(
        self,
        owner,
        quantity: int,
        reference_type: str = 'release',
        reference_id: str = '',
    ) -> InventoryAdjustment:
        """Give back reserved units; the reserved count never drops below zero."""
        _check_positive(quantity)
        with transaction.atomic():
            locked = self._lock_for_mutation(owner)
            released = min(quantity, locked.reserved_quantity)
            adjustment = self._record(
                locked, 0, -released, InventoryAdjustment.REASON_RELEASE,
                notes=f'Released {released}',
                reference_type=reference_type, reference_id=reference_id,
            )
            self._sync(owner, locked)
        return adjustment

    # =========================================================================
    # Batches
    # =========================================================================

    def bulk_adjust(self, rows: List[Dict[str, Any]]) -> List[InventoryAdjustment]:
        """
        Several adjustments in one transaction. Each row holds ``owner``,
        ``quantity``, ``reason`` and optionally ``notes``, ``reference_type``
        and ``reference_id``.
        """
        with transaction.atomic():
            return [
                self.adjust_inventory(
                    row['owner'],
                    row['quantity'],
                    reason=row.get('reason', InventoryAdjustment.REASON_MANUAL),
                    notes=row.get('notes', ''),
                    reference_type=row.get('reference_type', ''),
                    reference_id=row.get('reference_id', ''),
                )
                for row in rows
            ]

    def can_fulfill_order(self, lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        results = []
        for line in lines:
            owner = line['owner']
            requested = line['quantity']
            available = self.get_available_quantity(owner)
            results.append({
                'owner': owner,
                'requested_quantity': requested,
                'available_quantity': available,
                'can_fulfill': available >= requested,
                'shortage': max(0, requested - available),
            })
        return results

    def reserve_for_order(self, lines: List[Dict[str, Any]], order_id: str) -> List[Dict[str, Any]]:
        """
        Reserve every line of an order or none of them. Raises
        InsufficientInventory naming the first line that cannot be held.
        """
        results = []
        with transaction.atomic():
            for line in lines:
                owner = line['owner']
                if not self.reserve_inventory(owner, line['quantity'], 'order', order_id):
                    raise InsufficientInventory(
                        f"Insufficient inventory for {owner}",
                        owner_type=owner._meta.model_name,
                        owner_id=owner.pk,
                        order_id=order_id,
                    )
                results.append({'owner': owner, 'quantity': line['quantity'], 'success': True})
        return results

    def release_for_order(self, lines: List[Dict[str, Any]], order_id: str) -> List[InventoryAdjustment]:
        with transaction.atomic():
            return [
                self.release_inventory(line['owner'], line['quantity'], 'order', order_id)
                for line in lines
            ]

    def get_inventory_stats(self, item: CatalogItem) -> Dict[str, Any]:
        stats = {
            'total_inventory': item.total_inventory(),
            'total_reserved': item.total_reserved(),
            'total_available': item.available_inventory(),
            'has_variants': item.has_variants(),
            'track_inventory': item.track_inventory,
            'is_low_stock': self.is_low_stock(item),
        }
        if stats['has_variants']:
            stats['variations'] = [
                {
                    'id': variation.id,
                    'name': variation.name,
                    'sku': variation.sku,
                    'inventory_quantity': variation.inventory_quantity,
                    'reserved_quantity': variation.reserved_quantity,
                    'available_quantity': variation.available_inventory(),
                    'is_low_stock': self.is_low_stock(variation),
                }
                for variation in item.get_variations()
            ]
        return stats
