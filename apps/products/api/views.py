from django.shortcuts import get_object_or_404
from django.utils.functional import cached_property
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from apps.products.models import (
    Attribute,
    CatalogItem,
    Team,
    TombstoneMode,
    Variation,
)
from apps.products.services import CatalogService
from .filters import CatalogItemFilter, VariationFilter
from .serializers import (
    AdjustmentSerializer,
    AttributeOptionCreateSerializer,
    AttributeOptionSerializer,
    AttributeSerializer,
    AvailabilitySerializer,
    CatalogItemDetailSerializer,
    CatalogItemListSerializer,
    CatalogItemSerializer,
    GenerateVariationsSerializer,
    InventoryAdjustmentSerializer,
    QuantitySerializer,
    ReservationSerializer,
    VariationCreateSerializer,
    VariationSerializer,
    VariationUpdateSerializer,
)


class TeamScopedMixin:
    """
    Resolves the team from the ``team_id`` URL kwarg and scopes querysets
    and services to it.
    """

    @cached_property
    def team(self):
        return get_object_or_404(Team, pk=self.kwargs['team_id'])

    @cached_property
    def service(self):
        return CatalogService(self.team, self.request.user)

    def get_queryset(self):
        return super().get_queryset().filter(team=self.team)


class InventoryActionsMixin:
    """
    Ledger endpoints for the viewset's object (catalog item or variation).
    """

    def _run(self, serializer_class, callback):
        serializer = serializer_class(data=self.request.data)
        serializer.is_valid(raise_exception=True)
        return callback(self.get_object(), serializer.validated_data)

    def _availability(self, owner):
        owner.refresh_from_db()
        ledger = self.service.ledger
        data = AvailabilitySerializer({
            'track_inventory': owner.track_inventory,
            'inventory_quantity': owner.inventory_quantity,
            'reserved_quantity': owner.reserved_quantity,
            'available_quantity': ledger.get_available_quantity(owner),
            'is_low_stock': ledger.is_low_stock(owner),
        }).data
        return data

    def _adjustment_response(self, adjustment, status_code=status.HTTP_201_CREATED):
        return Response(InventoryAdjustmentSerializer(adjustment).data, status=status_code)

    @action(detail=True, methods=['get'])
    def availability(self, request, team_id=None, pk=None):
        """Quantity, reservations and available stock."""
        return Response(self._availability(self.get_object()))

    @action(detail=True, methods=['post'])
    def reserve(self, request, team_id=None, pk=None):
        """
        Hold stock without reducing the quantity on hand.

        Expected payload:
        {"quantity": 3, "reference_type": "order", "reference_id": "PED-1001"}
        """
        def callback(owner, data):
            reserved = self.service.ledger.reserve_inventory(
                owner,
                data['quantity'],
                reference_type=data.get('reference_type') or 'reservation',
                reference_id=data['reference_id'],
            )
            body = {'reserved': reserved, **self._availability(owner)}
            return Response(body, status=status.HTTP_200_OK if reserved else status.HTTP_409_CONFLICT)
        return self._run(ReservationSerializer, callback)

    @action(detail=True, methods=['post'])
    def release(self, request, team_id=None, pk=None):
        def callback(owner, data):
            adjustment = self.service.ledger.release_inventory(
                owner,
                data['quantity'],
                reference_type=data.get('reference_type') or 'release',
                reference_id=data['reference_id'],
            )
            return self._adjustment_response(adjustment)
        return self._run(ReservationSerializer, callback)

    @action(detail=True, methods=['post'])
    def sale(self, request, team_id=None, pk=None):
        """Decrement stock for a sale: {"quantity": 2, "reference_id": "VENDA-1"}"""
        def callback(owner, data):
            adjustment = self.service.ledger.decrement_for_sale(owner, data['quantity'], data['reference_id'])
            return self._adjustment_response(adjustment)
        return self._run(QuantitySerializer, callback)

    @action(detail=True, methods=['post'], url_path='return', url_name='return')
    def return_stock(self, request, team_id=None, pk=None):
        def callback(owner, data):
            adjustment = self.service.ledger.increment_for_return(owner, data['quantity'], data['reference_id'])
            return self._adjustment_response(adjustment)
        return self._run(QuantitySerializer, callback)

    @action(detail=True, methods=['post'])
    def adjust(self, request, team_id=None, pk=None):
        """
        Signed manual adjustment.

        Expected payload:
        {"quantity": -4, "reason": "Inventário", "notes": "Contagem anual"}
        """
        def callback(owner, data):
            adjustment = self.service.ledger.adjust_inventory(
                owner,
                data['quantity'],
                reason=data['reason'],
                notes=data['notes'],
                reference_type=data['reference_type'],
                reference_id=data['reference_id'],
            )
            return self._adjustment_response(adjustment)
        return self._run(AdjustmentSerializer, callback)

    @action(detail=True, methods=['get'])
    def history(self, request, team_id=None, pk=None):
        """Adjustments, most recent first. ``?limit=`` defaults to 50."""
        try:
            limit = int(request.query_params.get('limit', 50))
        except ValueError:
            raise ValidationError({'limit': 'Must be an integer.'})
        history = self.service.ledger.get_adjustment_history(self.get_object(), limit=max(1, limit))
        return Response(InventoryAdjustmentSerializer(history, many=True).data)


class CatalogItemViewSet(TeamScopedMixin, InventoryActionsMixin, viewsets.ModelViewSet):
    """
    API endpoint for catalog items.

    list: List the team's catalog items
    retrieve: Get item detail with active variations
    create: Create a catalog item
    update: Update a catalog item (variations are not touched)
    delete: Delete an item that never had variations
    """
    queryset = CatalogItem.objects.all()
    filterset_class = CatalogItemFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'sku', 'description', 'manufacturer', 'part_number']
    ordering_fields = ['name', 'sku', 'price', 'created_at', 'manufacturer', 'part_number']
    ordering = ['name']

    def get_serializer_class(self):
        if self.action == 'list':
            return CatalogItemListSerializer
        elif self.action == 'retrieve':
            return CatalogItemDetailSerializer
        return CatalogItemSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('categories', 'configurable_attributes')
        return queryset

    def perform_create(self, serializer):
        serializer.instance = self.service.create_item(**serializer.validated_data)

    def perform_update(self, serializer):
        serializer.instance = self.service.update_item(serializer.instance, **serializer.validated_data)

    @action(detail=True, methods=['post'], url_path='generate-variations')
    def generate_variations(self, request, team_id=None, pk=None):
        """
        Generate one variation per option combination.

        Expected payload:
        {"attribute_ids": [1, 2]}
        """
        serializer = GenerateVariationsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        created = self.service.generator.generate_variations(
            self.get_object(), serializer.validated_data['attribute_ids']
        )
        return Response({
            'created': len(created),
            'variations': VariationSerializer(created, many=True).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def variations(self, request, team_id=None, pk=None):
        """Create a single variation: {"options": {"color": "Red"}, "sku": "CAM-RED"}"""
        serializer = VariationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        options = fields.pop('options')
        variation = self.service.generator.create_variation(self.get_object(), options, **fields)
        return Response(VariationSerializer(variation).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get', 'post'])
    def attributes(self, request, team_id=None, pk=None):
        """
        GET: attribute values of the item.
        POST: assign values, keyed by attribute id: {"3": "Algodão", "4": 180}
        """
        item = self.get_object()
        registry = self.service.registry
        if request.method == 'POST':
            if not isinstance(request.data, dict):
                raise ValidationError('Expected an object mapping attribute ids to values.')
            registry.assign_attributes(item, dict(request.data))
        return Response([
            {
                'attribute': attribute.slug,
                'attribute_id': attribute.pk,
                'value': value,
                'display_value': display_value,
            }
            for attribute, value, display_value in registry.get_attributes_for_display(item)
        ])

    @action(detail=True, methods=['get'])
    def stats(self, request, team_id=None, pk=None):
        item = self.get_object()
        return Response({
            'variations': self.service.generator.get_stats(item),
            'inventory': self.service.ledger.get_inventory_stats(item),
        })

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request, team_id=None):
        """Tracked items and variations at or below the low stock threshold."""
        results = []
        for owner in self.service.ledger.get_low_stock_items():
            results.append({
                'owner_type': owner._meta.model_name,
                'id': owner.pk,
                'name': str(owner),
                'sku': owner.sku,
                'available_quantity': owner.available_inventory(),
            })
        return Response(results)


class AttributeViewSet(TeamScopedMixin, viewsets.ModelViewSet):
    """
    API endpoint for attributes (Color, Size, Material...).
    """
    queryset = Attribute.objects.prefetch_related('options')
    serializer_class = AttributeSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'slug']
    ordering = ['display_order', 'name']

    def perform_create(self, serializer):
        serializer.instance = self.service.registry.define_attribute(**serializer.validated_data)

    def perform_update(self, serializer):
        slug = serializer.validated_data.get('slug')
        if slug and Attribute.objects.filter(team=self.team, slug=slug).exclude(pk=serializer.instance.pk).exists():
            raise ValidationError({'slug': f"Attribute slug '{slug}' already exists"})
        serializer.save()

    @action(detail=True, methods=['post'], url_path='options', url_name='options')
    def add_option(self, request, team_id=None, pk=None):
        """Define an option: {"value": "Azul", "code": "AZ"}"""
        serializer = AttributeOptionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        option = self.service.registry.define_option(self.get_object(), **serializer.validated_data)
        return Response(AttributeOptionSerializer(option).data, status=status.HTTP_201_CREATED)


class VariationViewSet(TeamScopedMixin,
                       InventoryActionsMixin,
                       mixins.ListModelMixin,
                       mixins.RetrieveModelMixin,
                       mixins.UpdateModelMixin,
                       mixins.DestroyModelMixin,
                       viewsets.GenericViewSet):
    """
    API endpoint for variations.

    Lists active variations by default; ``?mode=include`` adds retired ones
    and ``?mode=only`` lists just the retired. Deleting retires the variation.
    """
    queryset = Variation.objects.select_related('catalog_item')
    serializer_class = VariationSerializer
    filterset_class = VariationFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['sku', 'name', 'catalog_item__name']
    ordering_fields = ['sku', 'name', 'price', 'inventory_quantity', 'created_at']
    ordering = ['catalog_item', 'id']
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset
        mode = self.request.query_params.get('mode', TombstoneMode.ACTIVE)
        if mode not in TombstoneMode.values:
            raise ValidationError({'mode': f"Must be one of: {', '.join(TombstoneMode.values)}"})
        return queryset.in_mode(mode)

    def update(self, request, *args, **kwargs):
        serializer = VariationUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        variation = self.service.generator.update_variation(self.get_object(), serializer.validated_data)
        return Response(VariationSerializer(variation).data)

    def perform_destroy(self, instance):
        self.service.generator.delete_variation(instance)

    @action(detail=True, methods=['post'])
    def restore(self, request, team_id=None, pk=None):
        variation = self.service.generator.restore_variation(self.get_object())
        return Response(VariationSerializer(variation).data)

    @action(detail=True, methods=['post'], url_path='set-default')
    def set_default(self, request, team_id=None, pk=None):
        variation = self.service.generator.set_default(self.get_object())
        return Response(VariationSerializer(variation).data)
