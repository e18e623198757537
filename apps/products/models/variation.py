import hashlib
import json
from decimal import Decimal

from django.contrib.contenttypes.fields import GenericRelation
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from simple_history.models import HistoricalRecords


class TombstoneMode(models.TextChoices):
    ACTIVE = 'active', 'Ativas'
    INCLUDE = 'include', 'Todas (inclui retiradas)'
    ONLY = 'only', 'Somente retiradas'


def options_digest(options):
    """Stable digest of an options map, independent of key order."""
    canonical = json.dumps(options or {}, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
    return hashlib.sha1(canonical.encode('utf-8')).hexdigest()


class VariationQuerySet(models.QuerySet):
    """
    Explicit tombstone query modes. The default manager applies no implicit
    filtering; callers pick one of the modes below.
    """

    def active(self):
        return self.filter(deleted_at__isnull=True)

    def with_tombstoned(self):
        return self.all()

    def only_tombstoned(self):
        return self.filter(deleted_at__isnull=False)

    def in_mode(self, mode):
        if mode == TombstoneMode.ACTIVE:
            return self.active()
        if mode == TombstoneMode.INCLUDE:
            return self.with_tombstoned()
        if mode == TombstoneMode.ONLY:
            return self.only_tombstoned()
        raise ValueError(f"Unknown tombstone mode: {mode}")


class Variation(models.Model):
    """
    Concrete sellable unit of a catalog item: one selected value per
    configurable attribute, with its own sku, price and stock.

    ``options`` maps attribute slug -> selected value and identifies the
    variation among its active siblings.
    """
    team = models.ForeignKey(
        'products.Team',
        on_delete=models.CASCADE,
        related_name='variations',
        verbose_name='Equipe'
    )
    catalog_item = models.ForeignKey(
        'products.CatalogItem',
        on_delete=models.PROTECT,
        related_name='variations',
        verbose_name='Item de catálogo'
    )
    name = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Nome'
    )
    sku = models.CharField(
        max_length=100,
        verbose_name='SKU'
    )
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Preço'
    )
    currency_code = models.CharField(
        max_length=3,
        blank=True,
        verbose_name='Moeda'
    )
    is_default = models.BooleanField(
        default=False,
        verbose_name='Variação padrão'
    )

    # Inventory
    track_inventory = models.BooleanField(
        default=False,
        verbose_name='Rastrear estoque'
    )
    inventory_quantity = models.IntegerField(
        default=0,
        verbose_name='Quantidade em estoque'
    )
    reserved_quantity = models.IntegerField(
        default=0,
        verbose_name='Quantidade reservada'
    )

    options = models.JSONField(
        default=dict,
        verbose_name='Opções'
    )
    options_key = models.CharField(
        max_length=40,
        editable=False,
        verbose_name='Chave das opções'
    )

    attribute_assignments = GenericRelation(
        'products.AttributeAssignment',
        related_query_name='variation'
    )

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name='Retirada em'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Criado em'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Atualizado em'
    )

    objects = VariationQuerySet.as_manager()

    history = HistoricalRecords()

    class Meta:
        ordering = ['catalog_item', 'id']
        constraints = [
            models.UniqueConstraint(fields=['team', 'sku'], name='unique_team_variation_sku'),
            models.UniqueConstraint(
                fields=['catalog_item', 'options_key'],
                condition=models.Q(deleted_at__isnull=True),
                name='unique_active_variation_options'
            ),
            models.CheckConstraint(
                condition=models.Q(inventory_quantity__gte=0),
                name='variation_inventory_non_negative'
            ),
            models.CheckConstraint(
                condition=models.Q(reserved_quantity__gte=0),
                name='variation_reserved_non_negative'
            ),
        ]
        verbose_name = 'Variação'
        verbose_name_plural = 'Variações'

    def __str__(self):
        return self.name or self.sku

    def save(self, *args, **kwargs):
        if not self.team_id and self.catalog_item_id:
            self.team_id = self.catalog_item.team_id
        self.options_key = options_digest(self.options)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'options' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'options_key'}
        super().save(*args, **kwargs)

    @property
    def is_tombstoned(self):
        return self.deleted_at is not None

    def tombstone(self):
        """Retire the variation. Every other field stays as it is."""
        if self.deleted_at is None:
            self.deleted_at = timezone.now()
            self.save(update_fields=['deleted_at', 'updated_at'])

    def restore(self):
        if self.deleted_at is not None:
            self.deleted_at = None
            self.save(update_fields=['deleted_at', 'updated_at'])

    def get_option_value(self, attribute_slug):
        return (self.options or {}).get(attribute_slug)

    def available_inventory(self):
        return max(0, self.inventory_quantity - self.reserved_quantity)

    def is_in_stock(self):
        if not self.track_inventory:
            return True
        return self.available_inventory() > 0

    @property
    def effective_price(self):
        """Own price, or the parent's when the variation has none."""
        if self.price is not None:
            return self.price
        return self.catalog_item.price
