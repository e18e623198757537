from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    CatalogItemViewSet,
    AttributeViewSet,
    VariationViewSet,
)

router = DefaultRouter()
router.register(r'catalog-items', CatalogItemViewSet, basename='catalog-item')
router.register(r'attributes', AttributeViewSet, basename='attribute')
router.register(r'variations', VariationViewSet, basename='variation')

urlpatterns = [
    path('', include(router.urls)),
]
