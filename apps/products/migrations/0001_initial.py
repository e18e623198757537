# Generated manually

from decimal import Decimal

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import simple_history.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('contenttypes', '0002_remove_content_type_name'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Team',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Nome')),
                ('slug', models.SlugField(max_length=200, unique=True, verbose_name='Slug')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Equipe',
                'verbose_name_plural': 'Equipes',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Nome')),
                ('slug', models.SlugField(max_length=200, verbose_name='Slug')),
                ('description', models.TextField(blank=True, verbose_name='Descrição')),
                ('display_order', models.PositiveIntegerField(default=0, verbose_name='Ordem de exibição')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='children', to='products.category', verbose_name='Categoria Pai')),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='categories', to='products.team', verbose_name='Equipe')),
            ],
            options={
                'verbose_name': 'Categoria',
                'verbose_name_plural': 'Categorias',
                'ordering': ['display_order', 'name'],
                'constraints': [models.UniqueConstraint(fields=('team', 'slug'), name='unique_team_category_slug')],
            },
        ),
        migrations.CreateModel(
            name='Attribute',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, verbose_name='Nome')),
                ('slug', models.SlugField(max_length=100, verbose_name='Slug')),
                ('data_type', models.CharField(choices=[('text', 'Texto'), ('number', 'Número'), ('boolean', 'Sim/Não'), ('select', 'Seleção'), ('multi_select', 'Seleção múltipla')], default='text', max_length=20, verbose_name='Tipo de dado')),
                ('is_configurable', models.BooleanField(default=False, help_text='Pode ser usado para gerar variações', verbose_name='Configurável')),
                ('is_required', models.BooleanField(default=False, verbose_name='Obrigatório')),
                ('is_filterable', models.BooleanField(default=False, verbose_name='Filtrável')),
                ('description', models.TextField(blank=True, verbose_name='Descrição')),
                ('display_order', models.PositiveIntegerField(default=0, verbose_name='Ordem de exibição')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attributes', to='products.team', verbose_name='Equipe')),
            ],
            options={
                'verbose_name': 'Atributo',
                'verbose_name_plural': 'Atributos',
                'ordering': ['display_order', 'name'],
                'constraints': [models.UniqueConstraint(fields=('team', 'slug'), name='unique_team_attribute_slug')],
            },
        ),
        migrations.CreateModel(
            name='AttributeOption',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('value', models.CharField(max_length=255, verbose_name='Valor')),
                ('code', models.CharField(blank=True, max_length=50, verbose_name='Código')),
                ('sort_order', models.PositiveIntegerField(default=0, verbose_name='Ordem')),
                ('attribute', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='options', to='products.attribute', verbose_name='Atributo')),
            ],
            options={
                'verbose_name': 'Opção de Atributo',
                'verbose_name_plural': 'Opções de Atributos',
                'ordering': ['sort_order', 'id'],
                'constraints': [models.UniqueConstraint(fields=('attribute', 'value'), name='unique_attribute_option_value')],
            },
        ),
        migrations.CreateModel(
            name='AttributeAssignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('object_id', models.PositiveBigIntegerField(verbose_name='ID do dono')),
                ('custom_value', models.JSONField(blank=True, null=True, verbose_name='Valor personalizado')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('attribute', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assignments', to='products.attribute', verbose_name='Atributo')),
                ('content_type', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to='contenttypes.contenttype', verbose_name='Tipo do dono')),
                ('option', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assignments', to='products.attributeoption', verbose_name='Opção')),
            ],
            options={
                'verbose_name': 'Atribuição de Atributo',
                'verbose_name_plural': 'Atribuições de Atributos',
                'ordering': ['attribute__display_order', 'attribute__name'],
                'indexes': [models.Index(fields=['content_type', 'object_id'], name='assignment_owner_idx')],
                'constraints': [models.UniqueConstraint(fields=('content_type', 'object_id', 'attribute'), name='unique_owner_attribute_assignment')],
            },
        ),
        migrations.CreateModel(
            name='CatalogItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, verbose_name='Nome')),
                ('slug', models.SlugField(max_length=255, verbose_name='Slug')),
                ('sku', models.CharField(blank=True, max_length=100, null=True, verbose_name='SKU')),
                ('description', models.TextField(blank=True, verbose_name='Descrição')),
                ('manufacturer', models.CharField(blank=True, max_length=255, verbose_name='Fabricante')),
                ('part_number', models.CharField(blank=True, max_length=100, verbose_name='Código do fabricante')),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Preço')),
                ('currency_code', models.CharField(default='BRL', max_length=3, verbose_name='Moeda')),
                ('is_active', models.BooleanField(default=True, verbose_name='Ativo')),
                ('track_inventory', models.BooleanField(default=False, verbose_name='Rastrear estoque')),
                ('inventory_quantity', models.IntegerField(default=0, verbose_name='Quantidade em estoque')),
                ('reserved_quantity', models.IntegerField(default=0, verbose_name='Quantidade reservada')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Criado em')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
                ('categories', models.ManyToManyField(blank=True, related_name='catalog_items', to='products.category', verbose_name='Categorias')),
                ('configurable_attributes', models.ManyToManyField(blank=True, related_name='configured_items', to='products.attribute', verbose_name='Atributos configuráveis')),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='catalog_items', to='products.team', verbose_name='Equipe')),
            ],
            options={
                'verbose_name': 'Item de Catálogo',
                'verbose_name_plural': 'Itens de Catálogo',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['team', 'name'], name='item_team_name_idx'),
                    models.Index(fields=['team', 'created_at'], name='item_team_created_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('team', 'slug'), name='unique_team_item_slug'),
                    models.UniqueConstraint(condition=models.Q(('sku__isnull', False)), fields=('team', 'sku'), name='unique_team_item_sku'),
                    models.CheckConstraint(condition=models.Q(('inventory_quantity__gte', 0)), name='item_inventory_non_negative'),
                    models.CheckConstraint(condition=models.Q(('reserved_quantity__gte', 0)), name='item_reserved_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Variation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(blank=True, max_length=255, verbose_name='Nome')),
                ('sku', models.CharField(max_length=100, verbose_name='SKU')),
                ('price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Preço')),
                ('currency_code', models.CharField(blank=True, max_length=3, verbose_name='Moeda')),
                ('is_default', models.BooleanField(default=False, verbose_name='Variação padrão')),
                ('track_inventory', models.BooleanField(default=False, verbose_name='Rastrear estoque')),
                ('inventory_quantity', models.IntegerField(default=0, verbose_name='Quantidade em estoque')),
                ('reserved_quantity', models.IntegerField(default=0, verbose_name='Quantidade reservada')),
                ('options', models.JSONField(default=dict, verbose_name='Opções')),
                ('options_key', models.CharField(editable=False, max_length=40, verbose_name='Chave das opções')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True, verbose_name='Retirada em')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Criado em')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
                ('catalog_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='variations', to='products.catalogitem', verbose_name='Item de catálogo')),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='variations', to='products.team', verbose_name='Equipe')),
            ],
            options={
                'verbose_name': 'Variação',
                'verbose_name_plural': 'Variações',
                'ordering': ['catalog_item', 'id'],
                'constraints': [
                    models.UniqueConstraint(fields=('team', 'sku'), name='unique_team_variation_sku'),
                    models.UniqueConstraint(condition=models.Q(('deleted_at__isnull', True)), fields=('catalog_item', 'options_key'), name='unique_active_variation_options'),
                    models.CheckConstraint(condition=models.Q(('inventory_quantity__gte', 0)), name='variation_inventory_non_negative'),
                    models.CheckConstraint(condition=models.Q(('reserved_quantity__gte', 0)), name='variation_reserved_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InventoryAdjustment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('object_id', models.PositiveBigIntegerField(verbose_name='ID do dono')),
                ('quantity_before', models.IntegerField(verbose_name='Quantidade anterior')),
                ('quantity_after', models.IntegerField(verbose_name='Quantidade posterior')),
                ('adjustment_quantity', models.IntegerField(verbose_name='Ajuste')),
                ('reserved_before', models.IntegerField(default=0, verbose_name='Reservado anterior')),
                ('reserved_after', models.IntegerField(default=0, verbose_name='Reservado posterior')),
                ('reason', models.CharField(max_length=255, verbose_name='Motivo')),
                ('notes', models.TextField(blank=True, verbose_name='Observações')),
                ('reference_type', models.CharField(blank=True, max_length=50, verbose_name='Tipo de referência')),
                ('reference_id', models.CharField(blank=True, max_length=100, verbose_name='ID de referência')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Criado em')),
                ('content_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to='contenttypes.contenttype', verbose_name='Tipo do dono')),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inventory_adjustments', to='products.team', verbose_name='Equipe')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Usuário')),
            ],
            options={
                'verbose_name': 'Ajuste de Estoque',
                'verbose_name_plural': 'Ajustes de Estoque',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['content_type', 'object_id', '-created_at'], name='adjustment_owner_idx'),
                    models.Index(fields=['team', 'reference_type', 'reference_id'], name='adjustment_reference_idx'),
                ],
                'constraints': [models.CheckConstraint(condition=models.Q(('quantity_after__gte', 0)), name='adjustment_after_non_negative')],
            },
        ),
        migrations.CreateModel(
            name='HistoricalCatalogItem',
            fields=[
                ('id', models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name='ID')),
                ('name', models.CharField(max_length=255, verbose_name='Nome')),
                ('slug', models.SlugField(max_length=255, verbose_name='Slug')),
                ('sku', models.CharField(blank=True, max_length=100, null=True, verbose_name='SKU')),
                ('description', models.TextField(blank=True, verbose_name='Descrição')),
                ('manufacturer', models.CharField(blank=True, max_length=255, verbose_name='Fabricante')),
                ('part_number', models.CharField(blank=True, max_length=100, verbose_name='Código do fabricante')),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Preço')),
                ('currency_code', models.CharField(default='BRL', max_length=3, verbose_name='Moeda')),
                ('is_active', models.BooleanField(default=True, verbose_name='Ativo')),
                ('track_inventory', models.BooleanField(default=False, verbose_name='Rastrear estoque')),
                ('inventory_quantity', models.IntegerField(default=0, verbose_name='Quantidade em estoque')),
                ('reserved_quantity', models.IntegerField(default=0, verbose_name='Quantidade reservada')),
                ('created_at', models.DateTimeField(blank=True, editable=False, verbose_name='Criado em')),
                ('updated_at', models.DateTimeField(blank=True, editable=False, verbose_name='Atualizado em')),
                ('history_id', models.AutoField(primary_key=True, serialize=False)),
                ('history_date', models.DateTimeField(db_index=True)),
                ('history_change_reason', models.CharField(max_length=100, null=True)),
                ('history_type', models.CharField(choices=[('+', 'Created'), ('~', 'Changed'), ('-', 'Deleted')], max_length=1)),
                ('history_user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('team', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to='products.team', verbose_name='Equipe')),
            ],
            options={
                'verbose_name': 'historical Item de Catálogo',
                'verbose_name_plural': 'historical Itens de Catálogo',
                'ordering': ('-history_date', '-history_id'),
                'get_latest_by': ('history_date', 'history_id'),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name='HistoricalVariation',
            fields=[
                ('id', models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name='ID')),
                ('name', models.CharField(blank=True, max_length=255, verbose_name='Nome')),
                ('sku', models.CharField(max_length=100, verbose_name='SKU')),
                ('price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='Preço')),
                ('currency_code', models.CharField(blank=True, max_length=3, verbose_name='Moeda')),
                ('is_default', models.BooleanField(default=False, verbose_name='Variação padrão')),
                ('track_inventory', models.BooleanField(default=False, verbose_name='Rastrear estoque')),
                ('inventory_quantity', models.IntegerField(default=0, verbose_name='Quantidade em estoque')),
                ('reserved_quantity', models.IntegerField(default=0, verbose_name='Quantidade reservada')),
                ('options', models.JSONField(default=dict, verbose_name='Opções')),
                ('options_key', models.CharField(editable=False, max_length=40, verbose_name='Chave das opções')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True, verbose_name='Retirada em')),
                ('created_at', models.DateTimeField(blank=True, editable=False, verbose_name='Criado em')),
                ('updated_at', models.DateTimeField(blank=True, editable=False, verbose_name='Atualizado em')),
                ('history_id', models.AutoField(primary_key=True, serialize=False)),
                ('history_date', models.DateTimeField(db_index=True)),
                ('history_change_reason', models.CharField(max_length=100, null=True)),
                ('history_type', models.CharField(choices=[('+', 'Created'), ('~', 'Changed'), ('-', 'Deleted')], max_length=1)),
                ('catalog_item', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to='products.catalogitem', verbose_name='Item de catálogo')),
                ('history_user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('team', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to='products.team', verbose_name='Equipe')),
            ],
            options={
                'verbose_name': 'historical Variação',
                'verbose_name_plural': 'historical Variações',
                'ordering': ('-history_date', '-history_id'),
                'get_latest_by': ('history_date', 'history_id'),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
