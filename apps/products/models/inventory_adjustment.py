from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models


class ImmutableRecordError(Exception):
    pass


class InventoryAdjustmentQuerySet(models.QuerySet):

    def for_owner(self, owner):
        return self.filter(
            content_type=ContentType.objects.get_for_model(owner),
            object_id=owner.pk,
        )

    def update(self, **kwargs):
        raise ImmutableRecordError('Inventory adjustments are append-only')

    def delete(self):
        raise ImmutableRecordError('Inventory adjustments are append-only')


class InventoryAdjustment(models.Model):
    """
    Append-only audit record of one ledger mutation on a catalog item or
    variation. ``quantity_after - quantity_before == adjustment_quantity``.
    """
    REASON_SALE = 'Sale'
    REASON_RETURN = 'Return'
    REASON_MANUAL = 'Manual adjustment'
    REASON_RESERVATION = 'Reservation'
    REASON_RELEASE = 'Release'

    team = models.ForeignKey(
        'products.Team',
        on_delete=models.PROTECT,
        related_name='inventory_adjustments',
        verbose_name='Equipe'
    )
    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.PROTECT,
        verbose_name='Tipo do dono'
    )
    object_id = models.PositiveBigIntegerField(verbose_name='ID do dono')
    owner = GenericForeignKey('content_type', 'object_id')

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name='Usuário'
    )
    quantity_before = models.IntegerField(verbose_name='Quantidade anterior')
    quantity_after = models.IntegerField(verbose_name='Quantidade posterior')
    adjustment_quantity = models.IntegerField(verbose_name='Ajuste')
    reserved_before = models.IntegerField(default=0, verbose_name='Reservado anterior')
    reserved_after = models.IntegerField(default=0, verbose_name='Reservado posterior')
    reason = models.CharField(
        max_length=255,
        verbose_name='Motivo'
    )
    notes = models.TextField(
        blank=True,
        verbose_name='Observações'
    )
    reference_type = models.CharField(
        max_length=50,
        blank=True,
        verbose_name='Tipo de referência'
    )
    reference_id = models.CharField(
        max_length=100,
        blank=True,
        verbose_name='ID de referência'
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Criado em'
    )

    objects = InventoryAdjustmentQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['content_type', 'object_id', '-created_at'], name='adjustment_owner_idx'),
            models.Index(fields=['team', 'reference_type', 'reference_id'], name='adjustment_reference_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity_after__gte=0),
                name='adjustment_after_non_negative'
            ),
        ]
        verbose_name = 'Ajuste de Estoque'
        verbose_name_plural = 'Ajustes de Estoque'

    def __str__(self):
        sign = '+' if self.adjustment_quantity >= 0 else ''
        return f"{self.reason}: {self.quantity_before} → {self.quantity_after} ({sign}{self.adjustment_quantity})"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ImmutableRecordError('Inventory adjustments cannot be modified')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError('Inventory adjustments cannot be deleted')
