"""
Typed errors raised by the catalog engine.

Every error carries a machine-readable ``code`` so the API layer and other
callers can branch on the type instead of parsing messages:

    CatalogError
    +-- InvalidAttributeValue      value fails its attribute's data type / options
    +-- InvalidQuantity            non-positive or negative quantities
    +-- InventoryTrackingDisabled  ledger mutation on an untracked owner
    +-- InsufficientInventory      order reservation cannot be satisfied
    +-- StockHeldByVariations      ledger mutation on an item whose variations hold the stock
    +-- UniquenessViolation        duplicate sku, slug, option or combination
    +-- NotFound                   id does not exist within the team
"""


class CatalogError(Exception):
    code = 'catalog_error'

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidAttributeValue(CatalogError):
    code = 'invalid_attribute_value'

    def __init__(self, attribute, value, message=None):
        self.attribute = attribute
        self.value = value
        super().__init__(
            message or f"Invalid value {value!r} for attribute '{attribute.name}' ({attribute.data_type})",
            attribute=attribute.slug,
        )


class InvalidQuantity(CatalogError):
    code = 'invalid_quantity'


class InventoryTrackingDisabled(CatalogError):
    code = 'inventory_tracking_disabled'

    def __init__(self, owner):
        self.owner = owner
        super().__init__(
            f"Inventory is not tracked for {owner._meta.model_name} {owner.pk}",
            owner_type=owner._meta.model_name,
            owner_id=owner.pk,
        )


class InsufficientInventory(CatalogError):
    code = 'insufficient_inventory'


class StockHeldByVariations(CatalogError):
    code = 'stock_held_by_variations'

    def __init__(self, item):
        self.owner = item
        super().__init__(
            f"Stock of '{item.name}' is kept on its variations",
            owner_type=item._meta.model_name,
            owner_id=item.pk,
        )


class UniquenessViolation(CatalogError):
    code = 'uniqueness_violation'


class NotFound(CatalogError):
    code = 'not_found'


class BulkAssignmentError(CatalogError):
    """
    Some entries of a bulk attribute assignment failed. Valid entries were
    still applied; ``assigned`` holds them and ``errors`` maps attribute id
    to the error raised for it.
    """
    code = 'invalid_attribute_values'

    def __init__(self, assigned, errors):
        self.assigned = assigned
        self.errors = errors
        super().__init__(
            f"{len(errors)} attribute value(s) rejected",
            errors={str(key): error.message for key, error in errors.items()},
        )
