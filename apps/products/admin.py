from django.contrib import admin
from django.utils.html import format_html
from import_export import resources, fields
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget
from adminsortable2.admin import SortableAdminMixin, SortableInlineAdminMixin
from simple_history.admin import SimpleHistoryAdmin

from .exceptions import CatalogError
from .models import (
    Team,
    Category,
    Attribute,
    AttributeOption,
    CatalogItem,
    Variation,
    InventoryAdjustment,
)
from .services import InventoryLedger, VariationGenerator


def stock_badge(owner):
    """Colored stock status of a catalog item or variation."""
    if not owner.track_inventory:
        color, label = 'blue', 'Não rastreado'
    elif not owner.is_in_stock():
        color, label = 'red', 'Sem estoque'
    elif InventoryLedger(owner.team).is_low_stock(owner):
        color, label = 'orange', 'Estoque baixo'
    else:
        color, label = 'green', 'Em estoque'
    return format_html('<span style="color: {};">{}</span>', color, label)


# =============================================================================
# Import/Export Resources
# =============================================================================

class VariationResource(resources.ModelResource):
    """Resource for exporting variations and updating their prices."""

    catalog_item_name = fields.Field(
        column_name='catalog_item',
        attribute='catalog_item',
        widget=ForeignKeyWidget(CatalogItem, 'name'),
        readonly=True
    )
    # Stock only changes through the ledger and identity never changes
    options = fields.Field(attribute='options', column_name='options', readonly=True)
    inventory_quantity = fields.Field(
        attribute='inventory_quantity', column_name='inventory_quantity', readonly=True
    )
    reserved_quantity = fields.Field(
        attribute='reserved_quantity', column_name='reserved_quantity', readonly=True
    )
    deleted_at = fields.Field(attribute='deleted_at', column_name='deleted_at', readonly=True)

    class Meta:
        model = Variation
        import_id_fields = ['sku']
        fields = (
            'sku', 'catalog_item_name', 'name', 'price', 'currency_code',
            'options', 'track_inventory', 'inventory_quantity', 'reserved_quantity',
            'deleted_at'
        )
        export_order = fields
        skip_unchanged = True


class AttributeOptionResource(resources.ModelResource):
    """Resource for importing/exporting attribute options."""

    attribute_slug = fields.Field(
        column_name='attribute',
        attribute='attribute',
        widget=ForeignKeyWidget(Attribute, 'slug')
    )

    class Meta:
        model = AttributeOption
        import_id_fields = ['attribute_slug', 'value']
        fields = ('attribute_slug', 'value', 'code', 'sort_order')


# =============================================================================
# Inlines
# =============================================================================

class AttributeOptionInline(SortableInlineAdminMixin, admin.TabularInline):
    model = AttributeOption
    extra = 1
    fields = ['value', 'code', 'sort_order']


class VariationInline(admin.TabularInline):
    model = Variation
    extra = 0
    fields = ['sku', 'name', 'price', 'inventory_quantity', 'reserved_quantity', 'is_default']
    readonly_fields = ['sku', 'name', 'inventory_quantity', 'reserved_quantity']
    show_change_link = True
    can_delete = False

    def get_queryset(self, request):
        return super().get_queryset(request).active()

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================================
# Model Admins
# =============================================================================

@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'created_at']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Category)
class CategoryAdmin(SortableAdminMixin, admin.ModelAdmin):
    list_display = ['name', 'team', 'parent', 'display_order']
    list_filter = ['team']
    search_fields = ['name', 'slug']
    autocomplete_fields = ['parent']


@admin.register(CatalogItem)
class CatalogItemAdmin(SimpleHistoryAdmin):
    list_display = [
        'name', 'sku', 'team', 'price', 'variant_count',
        'stock_status', 'is_active', 'created_at'
    ]
    list_filter = ['team', 'is_active', 'track_inventory', 'categories']
    search_fields = ['name', 'sku', 'description', 'manufacturer', 'part_number']
    prepopulated_fields = {'slug': ('name',)}
    readonly_fields = ['variant_count', 'inventory_quantity', 'reserved_quantity', 'created_at', 'updated_at']
    filter_horizontal = ['categories', 'configurable_attributes']
    inlines = [VariationInline]

    fieldsets = (
        (None, {
            'fields': ('team', 'name', 'slug', 'sku', 'description', 'is_active')
        }),
        ('Fabricante', {
            'fields': ('manufacturer', 'part_number'),
            'classes': ('collapse',)
        }),
        ('Preços', {
            'fields': ('price', 'currency_code')
        }),
        ('Estoque', {
            'fields': ('track_inventory', 'inventory_quantity', 'reserved_quantity')
        }),
        ('Classificação', {
            'fields': ('categories', 'configurable_attributes')
        }),
        ('Informações', {
            'fields': ('variant_count', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def stock_status(self, obj):
        return stock_badge(obj)
    stock_status.short_description = 'Status Estoque'


@admin.register(Attribute)
class AttributeAdmin(SortableAdminMixin, admin.ModelAdmin):
    list_display = [
        'name', 'slug', 'team', 'data_type', 'is_configurable',
        'is_required', 'option_count', 'display_order'
    ]
    list_filter = ['team', 'data_type', 'is_configurable', 'is_required']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    inlines = [AttributeOptionInline]

    def option_count(self, obj):
        return obj.options.count()
    option_count.short_description = 'Opções'


@admin.register(AttributeOption)
class AttributeOptionAdmin(ImportExportModelAdmin):
    resource_class = AttributeOptionResource
    list_display = ['value', 'code', 'attribute', 'sort_order']
    list_filter = ['attribute__team', 'attribute']
    list_editable = ['sort_order']
    search_fields = ['value', 'code', 'attribute__name']
    autocomplete_fields = ['attribute']


@admin.register(Variation)
class VariationAdmin(ImportExportModelAdmin, SimpleHistoryAdmin):
    resource_class = VariationResource
    list_display = [
        'sku', 'name', 'catalog_item', 'price', 'inventory_quantity',
        'reserved_quantity', 'stock_status', 'is_default', 'retired'
    ]
    list_filter = ['team', 'track_inventory', 'is_default', 'deleted_at']
    search_fields = ['sku', 'name', 'catalog_item__name']
    readonly_fields = [
        'catalog_item', 'team', 'options', 'inventory_quantity', 'reserved_quantity',
        'deleted_at', 'created_at', 'updated_at'
    ]
    list_per_page = 50

    fieldsets = (
        (None, {
            'fields': ('catalog_item', 'team', 'sku', 'name', 'options', 'is_default')
        }),
        ('Preços', {
            'fields': ('price', 'currency_code')
        }),
        ('Estoque', {
            'fields': ('track_inventory', 'inventory_quantity', 'reserved_quantity')
        }),
        ('Informações', {
            'fields': ('deleted_at', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['retire_variations', 'restore_variations']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def retired(self, obj):
        return obj.is_tombstoned
    retired.boolean = True
    retired.short_description = 'Retirada'

    def stock_status(self, obj):
        return stock_badge(obj)
    stock_status.short_description = 'Status Estoque'

    @admin.action(description='Retirar variações selecionadas')
    def retire_variations(self, request, queryset):
        count = 0
        for variation in queryset.active():
            VariationGenerator(variation.team, request.user).delete_variation(variation)
            count += 1
        self.message_user(request, f'{count} variações retiradas.')

    @admin.action(description='Restaurar variações selecionadas')
    def restore_variations(self, request, queryset):
        restored = 0
        for variation in queryset.only_tombstoned():
            try:
                VariationGenerator(variation.team, request.user).restore_variation(variation)
            except CatalogError as e:
                self.message_user(request, f'{variation.sku}: {e.message}', level='warning')
                continue
            restored += 1
        self.message_user(request, f'{restored} variações restauradas.')


@admin.register(InventoryAdjustment)
class InventoryAdjustmentAdmin(admin.ModelAdmin):
    list_display = [
        'created_at', 'owner_display', 'reason', 'quantity_before',
        'quantity_after', 'delta_display', 'reference', 'user'
    ]
    list_filter = ['team', 'reason', 'content_type', 'created_at']
    search_fields = ['reference_id', 'notes']
    date_hierarchy = 'created_at'

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def owner_display(self, obj):
        return f'{obj.content_type.model} #{obj.object_id}'
    owner_display.short_description = 'Dono'

    def delta_display(self, obj):
        if obj.adjustment_quantity > 0:
            return format_html('<span style="color: green;">+{}</span>', obj.adjustment_quantity)
        elif obj.adjustment_quantity < 0:
            return format_html('<span style="color: red;">{}</span>', obj.adjustment_quantity)
        return '0'
    delta_display.short_description = 'Ajuste'

    def reference(self, obj):
        if not obj.reference_id:
            return '-'
        return f'{obj.reference_type}:{obj.reference_id}'
    reference.short_description = 'Referência'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================================
# Admin Site Configuration
# =============================================================================

admin.site.site_header = 'Catálogo e Estoque'
admin.site.site_title = 'Catálogo'
admin.site.index_title = 'Painel de Administração'
