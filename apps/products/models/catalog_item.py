from decimal import Decimal

from django.contrib.contenttypes.fields import GenericRelation
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Sum
from django.utils.text import slugify
from simple_history.models import HistoricalRecords

from .variation import TombstoneMode


class CatalogItem(models.Model):
    """
    Base catalog item.
    Example: "Camiseta Básica", which may own variations per color/size.

    Inventory fields on the item itself are only meaningful while it has no
    active variations; once it does, stock is the sum over its variations.
    """
    team = models.ForeignKey(
        'products.Team',
        on_delete=models.CASCADE,
        related_name='catalog_items',
        verbose_name='Equipe'
    )
    name = models.CharField(
        max_length=255,
        verbose_name='Nome'
    )
    slug = models.SlugField(
        max_length=255,
        verbose_name='Slug'
    )
    sku = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        verbose_name='SKU'
    )
    description = models.TextField(
        blank=True,
        verbose_name='Descrição'
    )
    manufacturer = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Fabricante'
    )
    part_number = models.CharField(
        max_length=100,
        blank=True,
        verbose_name='Código do fabricante'
    )
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Preço'
    )
    currency_code = models.CharField(
        max_length=3,
        default='BRL',
        verbose_name='Moeda'
    )
    categories = models.ManyToManyField(
        'products.Category',
        blank=True,
        related_name='catalog_items',
        verbose_name='Categorias'
    )
    configurable_attributes = models.ManyToManyField(
        'products.Attribute',
        blank=True,
        related_name='configured_items',
        verbose_name='Atributos configuráveis'
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name='Ativo'
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

    attribute_assignments = GenericRelation(
        'products.AttributeAssignment',
        related_query_name='catalog_item'
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Criado em'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Atualizado em'
    )

    history = HistoricalRecords()

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['team', 'slug'], name='unique_team_item_slug'),
            models.UniqueConstraint(
                fields=['team', 'sku'],
                condition=models.Q(sku__isnull=False),
                name='unique_team_item_sku'
            ),
            models.CheckConstraint(
                condition=models.Q(inventory_quantity__gte=0),
                name='item_inventory_non_negative'
            ),
            models.CheckConstraint(
                condition=models.Q(reserved_quantity__gte=0),
                name='item_reserved_non_negative'
            ),
        ]
        indexes = [
            models.Index(fields=['team', 'name'], name='item_team_name_idx'),
            models.Index(fields=['team', 'created_at'], name='item_team_created_idx'),
        ]
        verbose_name = 'Item de Catálogo'
        verbose_name_plural = 'Itens de Catálogo'

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
            base_slug = self.slug
            counter = 1
            while CatalogItem.objects.filter(team_id=self.team_id, slug=self.slug).exclude(pk=self.pk).exists():
                self.slug = f"{base_slug}-{counter}"
                counter += 1
        super().save(*args, **kwargs)

    # Variations

    def get_variations(self, mode=TombstoneMode.ACTIVE):
        """
        Variations of this item.

        ``mode`` selects active rows (default), all rows including retired
        ones, or only retired ones.
        """
        return self.variations.in_mode(mode)

    def has_variants(self):
        return self.variations.active().exists()

    @property
    def variant_count(self):
        return self.variations.active().count()

    # Inventory

    def total_inventory(self):
        if self.has_variants():
            return self.variations.active().aggregate(total=Sum('inventory_quantity'))['total'] or 0
        return self.inventory_quantity

    def total_reserved(self):
        if self.has_variants():
            return self.variations.active().aggregate(total=Sum('reserved_quantity'))['total'] or 0
        return self.reserved_quantity

    def available_inventory(self):
        """
        max(0, quantity - reserved) for the item itself, or the sum of that
        over active variations when it has any.
        """
        variations = list(self.variations.active().only('inventory_quantity', 'reserved_quantity'))
        if variations:
            return sum(v.available_inventory() for v in variations)
        return max(0, self.inventory_quantity - self.reserved_quantity)

    def is_in_stock(self):
        if not self.track_inventory:
            return True
        return self.available_inventory() > 0

    # Attributes

    def get_attribute_value(self, attribute):
        assignment = self.attribute_assignments.select_related('option').filter(attribute=attribute).first()
        return assignment.get_value() if assignment else None

    def get_all_categories(self):
        """Get all categories including ancestors."""
        all_cats = set()
        for cat in self.categories.all():
            all_cats.add(cat)
            for ancestor in cat.get_ancestors():
                all_cats.add(ancestor)
        return all_cats
