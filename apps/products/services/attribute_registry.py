"""
Attribute schemas and type-checked attribute values for one team.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from django.contrib.contenttypes.models import ContentType
from django.core.cache import cache
from django.db import IntegrityError, transaction
from django.db.models import Max, Q
from django.utils.text import slugify

from apps.products import conf
from apps.products.exceptions import (
    BulkAssignmentError,
    CatalogError,
    InvalidAttributeValue,
    NotFound,
    UniquenessViolation,
)
from apps.products.models import (
    Attribute,
    AttributeAssignment,
    AttributeOption,
    CatalogItem,
    Variation,
)

logger = logging.getLogger(__name__)

OWNER_MODELS = (CatalogItem, Variation)


def option_cache_key(attribute):
    return f'products:attribute-options:{attribute.team_id}:{attribute.pk}'


def invalidate_option_cache(attribute):
    cache.delete(option_cache_key(attribute))


class AttributeRegistry:
    """
    Defines attributes and options, and validates, stores and reads attribute
    values on catalog items and variations of a single team.

    Validation is a type-level check only. Required attributes are enforced
    at assignment time only when PRODUCTS_ENFORCE_REQUIRED_ATTRIBUTES is on;
    otherwise ``validate_assignments`` reports them for a form layer.
    """

    def __init__(self, team):
        self.team = team

    # =========================================================================
    # Schema
    # =========================================================================

    def define_attribute(
        self,
        name: str,
        data_type: str = Attribute.DATA_TYPE_TEXT,
        slug: Optional[str] = None,
        is_configurable: bool = False,
        is_required: bool = False,
        is_filterable: bool = False,
        description: str = '',
        display_order: int = 0,
    ) -> Attribute:
        if data_type not in dict(Attribute.DATA_TYPE_CHOICES):
            raise CatalogError(f"Unknown attribute data type: {data_type}")
        slug = slug or slugify(name)
        if Attribute.objects.filter(team=self.team, slug=slug).exists():
            raise UniquenessViolation(f"Attribute slug '{slug}' already exists", slug=slug)

        attribute = Attribute.objects.create(
            team=self.team,
            name=name,
            slug=slug,
            data_type=data_type,
            is_configurable=is_configurable,
            is_required=is_required,
            is_filterable=is_filterable,
            description=description,
            display_order=display_order,
        )
        logger.info('Attribute defined', extra={
            'team_id': self.team.pk,
            'attribute_id': attribute.pk,
            'data_type': data_type,
        })
        return attribute

    def define_option(
        self,
        attribute,
        value: str,
        code: str = '',
        sort_order: Optional[int] = None,
    ) -> AttributeOption:
        attribute = self.get_attribute(attribute)
        if not isinstance(value, str) or value == '':
            raise InvalidAttributeValue(attribute, value, 'Option values must be non-empty strings')
        if attribute.options.filter(value=value).exists():
            raise UniquenessViolation(
                f"Option '{value}' already exists for attribute '{attribute.name}'",
                attribute=attribute.slug,
            )
        if sort_order is None:
            last = attribute.options.aggregate(last=Max('sort_order'))['last']
            sort_order = 0 if last is None else last + 1

        try:
            with transaction.atomic():
                option = AttributeOption.objects.create(
                    attribute=attribute,
                    value=value,
                    code=code or '',
                    sort_order=sort_order,
                )
        except IntegrityError:
            raise UniquenessViolation(
                f"Option '{value}' already exists for attribute '{attribute.name}'",
                attribute=attribute.slug,
            )
        return option

    def get_attribute(self, attribute) -> Attribute:
        """Resolve an attribute instance or id within this team."""
        attribute_id = attribute.pk if isinstance(attribute, Attribute) else attribute
        try:
            return Attribute.objects.get(pk=attribute_id, team=self.team)
        except (Attribute.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Attribute {attribute_id} not found", attribute_id=attribute_id)

    def get_option_values(self, attribute) -> List[str]:
        """Option values in sort order, cached per team and attribute."""
        key = option_cache_key(attribute)
        values = cache.get(key)
        if values is None:
            values = attribute.get_valid_values()
            cache.set(key, values, conf.option_cache_timeout())
        return list(values)

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_value(self, attribute, value: Any) -> bool:
        """Type-level check of ``value`` against the attribute's data type."""
        option_values = self.get_option_values(attribute) if attribute.requires_options else ()
        return attribute.is_valid_value(value, option_values)

    is_valid_value = validate_value

    def _check_value(self, attribute, value):
        if not self.validate_value(attribute, value):
            raise InvalidAttributeValue(attribute, value)
        if (
            conf.enforce_required_attributes()
            and attribute.is_required
            and attribute.value_type.is_empty(value)
        ):
            raise InvalidAttributeValue(
                attribute, value, f"Required attribute '{attribute.name}' cannot be empty"
            )

    def _check_owner(self, owner):
        if not isinstance(owner, OWNER_MODELS):
            raise TypeError(f"Attributes can only be assigned to catalog items or variations, not {type(owner).__name__}")
        if owner.pk is None or owner.team_id != self.team.pk:
            raise NotFound(
                f"{owner._meta.verbose_name} {owner.pk} not found",
                owner_type=owner._meta.model_name,
                owner_id=owner.pk,
            )

    def _assignments(self, owner):
        return AttributeAssignment.objects.filter(
            content_type=ContentType.objects.get_for_model(owner),
            object_id=owner.pk,
        )

    # =========================================================================
    # Assignments
    # =========================================================================

    def assign_attribute(self, owner, attribute, value: Any) -> AttributeAssignment:
        """
        Validate and store ``value`` for (owner, attribute), replacing any
        existing assignment for the pair.
        """
        self._check_owner(owner)
        attribute = self.get_attribute(attribute)
        self._check_value(attribute, value)

        option = None
        custom_value = None
        option_value = None
        if attribute.requires_options:
            option_value = attribute.value_type.option_for(value, self.get_option_values(attribute))
        if option_value is not None:
            option = attribute.options.get(value=option_value)
        elif isinstance(value, tuple):
            custom_value = list(value)
        else:
            custom_value = value

        assignment, created = AttributeAssignment.objects.update_or_create(
            content_type=ContentType.objects.get_for_model(owner),
            object_id=owner.pk,
            attribute=attribute,
            defaults={'option': option, 'custom_value': custom_value},
        )
        logger.debug('Attribute %s on %s %s', 'assigned' if created else 'overwritten',
                     owner._meta.model_name, owner.pk)
        return assignment

    def assign_attributes(self, owner, values: Dict[Any, Any]) -> List[AttributeAssignment]:
        """
        Assign several attributes. Each entry is validated and applied on its
        own; rejected entries are reported together after the rest applied.
        """
        self._check_owner(owner)
        assigned = []
        errors = {}
        for attribute_id, value in values.items():
            try:
                assigned.append(self.assign_attribute(owner, attribute_id, value))
            except (InvalidAttributeValue, NotFound) as e:
                errors[attribute_id] = e
        if errors:
            raise BulkAssignmentError(assigned, errors)
        return assigned

    def update_attributes(self, owner, values: Dict[Any, Any]) -> List[AttributeAssignment]:
        """Replace the owner's assignment set with ``values``."""
        self._check_owner(owner)
        keep_ids = [self.get_attribute(attribute_id).pk for attribute_id in values]
        with transaction.atomic():
            self._assignments(owner).exclude(attribute_id__in=keep_ids).delete()
            return self.assign_attributes(owner, values)

    def bulk_assign(self, owners, values: Dict[Any, Any]) -> List[AttributeAssignment]:
        """
        Assign the same values to every owner in one transaction. A rejected
        value on any owner rolls back the whole batch.
        """
        assigned = []
        with transaction.atomic():
            for owner in owners:
                assigned.extend(self.assign_attributes(owner, values))
        logger.info('Attributes assigned in bulk', extra={
            'team_id': self.team.pk,
            'owner_count': len(owners),
            'attribute_count': len(values),
        })
        return assigned

    def remove_attribute(self, owner, attribute) -> bool:
        self._check_owner(owner)
        attribute = self.get_attribute(attribute)
        deleted, _ = self._assignments(owner).filter(attribute=attribute).delete()
        return deleted > 0

    def copy_attributes(self, source, target) -> List[AttributeAssignment]:
        """Copy every assignment of ``source`` onto ``target``."""
        self._check_owner(source)
        self._check_owner(target)
        with transaction.atomic():
            return [
                self.assign_attribute(target, assignment.attribute, assignment.get_value())
                for assignment in self._assignments(source).select_related('attribute', 'option')
            ]

    # =========================================================================
    # Reading
    # =========================================================================

    def get_assignment(self, owner, attribute) -> Optional[AttributeAssignment]:
        self._check_owner(owner)
        attribute = self.get_attribute(attribute)
        return self._assignments(owner).select_related('attribute', 'option').filter(attribute=attribute).first()

    def get_value(self, owner, attribute) -> Any:
        assignment = self.get_assignment(owner, attribute)
        return assignment.get_value() if assignment else None

    @staticmethod
    def get_display_value(assignment: AttributeAssignment) -> str:
        return assignment.get_display_value()

    def get_attributes_for_display(self, owner) -> List[Tuple[Attribute, Any, str]]:
        """(attribute, raw value, display value) for every assignment on the owner."""
        self._check_owner(owner)
        return [
            (assignment.attribute, assignment.get_value(), assignment.get_display_value())
            for assignment in self._assignments(owner).select_related('attribute', 'option')
        ]

    def validate_assignments(self, owner) -> List[str]:
        """
        Problems with the owner's stored values: required attributes that are
        empty or unassigned, and values the attribute no longer accepts (for
        instance after its data type changed).
        """
        self._check_owner(owner)
        errors = []
        assignments = list(self._assignments(owner).select_related('attribute', 'option'))

        for assignment in assignments:
            attribute = assignment.attribute
            value = assignment.get_value()
            if attribute.is_required and attribute.value_type.is_empty(value):
                errors.append(f"Required attribute '{attribute.name}' is missing a value")
            if value is not None and not self.validate_value(attribute, value):
                errors.append(f"Invalid value for attribute '{attribute.name}': {assignment.get_display_value()}")

        assigned_ids = {assignment.attribute_id for assignment in assignments}
        required = Attribute.objects.filter(team=self.team, is_required=True).exclude(pk__in=assigned_ids)
        for attribute in required:
            errors.append(f"Required attribute '{attribute.name}' is not assigned")

        return errors

    def find_owners_with_value(self, attribute, value: Any):
        """Catalog items whose assignment for ``attribute`` holds ``value``."""
        attribute = self.get_attribute(attribute)
        matches = AttributeAssignment.objects.filter(
            content_type=ContentType.objects.get_for_model(CatalogItem),
            attribute=attribute,
        )
        if attribute.requires_options and isinstance(value, str):
            matches = matches.filter(Q(option__value=value) | Q(custom_value=value))
        else:
            matches = matches.filter(custom_value=value)
        return CatalogItem.objects.filter(team=self.team, pk__in=matches.values('object_id'))

    def get_unique_values(self, attribute) -> List[Any]:
        """Option values followed by distinct scalar custom values in use."""
        attribute = self.get_attribute(attribute)
        values = self.get_option_values(attribute) if attribute.requires_options else []
        seen = set(values)
        custom_values = (
            AttributeAssignment.objects
            .filter(attribute=attribute, custom_value__isnull=False)
            .values_list('custom_value', flat=True)
        )
        for value in custom_values:
            if isinstance(value, (list, dict)) or value in ('', None):
                continue
            if value not in seen:
                seen.add(value)
                values.append(value)
        return values
