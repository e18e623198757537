from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.utils.text import slugify

from apps.products.value_types import get_value_type


class Attribute(models.Model):
    """
    Typed attribute schema that can be attached to catalog items and variations.
    Examples: Color (select), Size (select), Weight (number), Organic (boolean).

    Configurable attributes are the axes used to generate variations.
    """
    DATA_TYPE_TEXT = 'text'
    DATA_TYPE_NUMBER = 'number'
    DATA_TYPE_BOOLEAN = 'boolean'
    DATA_TYPE_SELECT = 'select'
    DATA_TYPE_MULTI_SELECT = 'multi_select'

    DATA_TYPE_CHOICES = [
        (DATA_TYPE_TEXT, 'Texto'),
        (DATA_TYPE_NUMBER, 'Número'),
        (DATA_TYPE_BOOLEAN, 'Sim/Não'),
        (DATA_TYPE_SELECT, 'Seleção'),
        (DATA_TYPE_MULTI_SELECT, 'Seleção múltipla'),
    ]

    team = models.ForeignKey(
        'products.Team',
        on_delete=models.CASCADE,
        related_name='attributes',
        verbose_name='Equipe'
    )
    name = models.CharField(
        max_length=100,
        verbose_name='Nome'
    )
    slug = models.SlugField(
        max_length=100,
        verbose_name='Slug'
    )
    data_type = models.CharField(
        max_length=20,
        choices=DATA_TYPE_CHOICES,
        default=DATA_TYPE_TEXT,
        verbose_name='Tipo de dado'
    )
    is_configurable = models.BooleanField(
        default=False,
        verbose_name='Configurável',
        help_text='Pode ser usado para gerar variações'
    )
    is_required = models.BooleanField(
        default=False,
        verbose_name='Obrigatório'
    )
    is_filterable = models.BooleanField(
        default=False,
        verbose_name='Filtrável'
    )
    description = models.TextField(
        blank=True,
        verbose_name='Descrição'
    )
    display_order = models.PositiveIntegerField(
        default=0,
        verbose_name='Ordem de exibição'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['display_order', 'name']
        constraints = [
            models.UniqueConstraint(fields=['team', 'slug'], name='unique_team_attribute_slug'),
        ]
        verbose_name = 'Atributo'
        verbose_name_plural = 'Atributos'

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    @property
    def value_type(self):
        return get_value_type(self.data_type)

    @property
    def requires_options(self):
        return self.value_type.requires_options

    def get_valid_values(self):
        """Option values in their defined order."""
        return list(self.options.order_by('sort_order', 'id').values_list('value', flat=True))

    def is_valid_value(self, value, option_values=None):
        """
        Type-level check of ``value`` against this attribute's data type.
        Required-ness is not checked here.
        """
        if option_values is None and self.requires_options:
            option_values = self.get_valid_values()
        return self.value_type.validate(value, option_values or ())


class AttributeOption(models.Model):
    """
    One predefined legal value of a select / multi-select attribute.
    """
    attribute = models.ForeignKey(
        Attribute,
        on_delete=models.CASCADE,
        related_name='options',
        verbose_name='Atributo'
    )
    value = models.CharField(
        max_length=255,
        verbose_name='Valor'
    )
    code = models.CharField(
        max_length=50,
        blank=True,
        verbose_name='Código'
    )
    sort_order = models.PositiveIntegerField(
        default=0,
        verbose_name='Ordem'
    )

    class Meta:
        ordering = ['sort_order', 'id']
        constraints = [
            models.UniqueConstraint(fields=['attribute', 'value'], name='unique_attribute_option_value'),
        ]
        verbose_name = 'Opção de Atributo'
        verbose_name_plural = 'Opções de Atributos'

    def __str__(self):
        return f"{self.attribute.name}: {self.value}"


class AttributeAssignment(models.Model):
    """
    Value of one attribute on one owner (catalog item or variation).

    Select values that match a known option are stored as a reference to the
    option; everything else (text, number, boolean, multi-select lists) is
    stored verbatim in ``custom_value``.
    """
    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        verbose_name='Tipo do dono'
    )
    object_id = models.PositiveBigIntegerField(verbose_name='ID do dono')
    owner = GenericForeignKey('content_type', 'object_id')

    attribute = models.ForeignKey(
        Attribute,
        on_delete=models.CASCADE,
        related_name='assignments',
        verbose_name='Atributo'
    )
    option = models.ForeignKey(
        AttributeOption,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assignments',
        verbose_name='Opção'
    )
    custom_value = models.JSONField(
        null=True,
        blank=True,
        verbose_name='Valor personalizado'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['attribute__display_order', 'attribute__name']
        constraints = [
            models.UniqueConstraint(
                fields=['content_type', 'object_id', 'attribute'],
                name='unique_owner_attribute_assignment'
            ),
        ]
        indexes = [
            models.Index(fields=['content_type', 'object_id'], name='assignment_owner_idx'),
        ]
        verbose_name = 'Atribuição de Atributo'
        verbose_name_plural = 'Atribuições de Atributos'

    def __str__(self):
        return f"{self.attribute.name} = {self.get_display_value()}"

    def get_value(self):
        if self.option_id is not None:
            return self.option.value
        return self.custom_value

    def get_display_value(self):
        return self.attribute.value_type.display(self.get_value())
