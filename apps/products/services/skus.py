from apps.products.models import CatalogItem, Variation


def sku_in_use(team, sku, exclude=None):
    """
    Whether ``sku`` is taken by any catalog item or variation of the team,
    retired variations included. ``exclude`` is the instance being edited.
    """
    items = CatalogItem.objects.filter(team=team, sku=sku)
    variations = Variation.objects.filter(team=team, sku=sku)
    if isinstance(exclude, CatalogItem):
        items = items.exclude(pk=exclude.pk)
    elif isinstance(exclude, Variation):
        variations = variations.exclude(pk=exclude.pk)
    return items.exists() or variations.exists()
