"""Pure helpers for tag-based system membership.

The broker has no notion of a "system"; membership is a join on resource
arguments. These functions index fixture or live resource lists without any
network access.
"""

from collections.abc import Iterable, Sequence
from typing import Any, Optional, TypeVar

from rmq_manage.domain.broker.resources import BrokerResource, Exchange
from rmq_manage.domain.template.value_objects import ResourceFilter

R = TypeVar("R", bound=BrokerResource)

DEFAULT_RESERVED_PREFIXES: tuple[str, ...] = ("amq.",)


def tag_of(resource: BrokerResource, key: str) -> Optional[Any]:
    """Return the tag value for key, treating empty values as untagged."""
    value = resource.argument(key)
    return value or None


def group_by_tag(resources: Iterable[R], key: str) -> dict[str, list[R]]:
    """Index resources by tag value, preserving encounter order; untagged are skipped."""
    groups: dict[str, list[R]] = {}
    for resource in resources:
        value = tag_of(resource, key)
        if value is None:
            continue
        groups.setdefault(value, []).append(resource)
    return groups


def filter_by_tag(resources: Iterable[R], key: str, value: str) -> list[R]:
    """Resources whose tag equals value."""
    return [r for r in resources if tag_of(r, key) == value]


def distinct_tags(resources: Iterable[BrokerResource], key: str) -> set[str]:
    """All distinct non-empty tag values."""
    return {v for v in (tag_of(r, key) for r in resources) if v is not None}


def is_protected_exchange(
    name: str, reserved_prefixes: Sequence[str] = DEFAULT_RESERVED_PREFIXES
) -> bool:
    """The default exchange and reserved-prefix exchanges cannot be deleted."""
    return name == "" or any(name.startswith(prefix) for prefix in reserved_prefixes)


def matches_filter(resource: BrokerResource, resource_filter: Optional[ResourceFilter]) -> bool:
    """Check every attribute the filter sets against the resource."""
    if resource_filter is None:
        return True
    if resource_filter.type is not None:
        if not isinstance(resource, Exchange) or resource.type != resource_filter.type:
            return False
    if resource_filter.durable is not None and resource.durable != resource_filter.durable:
        return False
    if (
        resource_filter.auto_delete is not None
        and resource.auto_delete != resource_filter.auto_delete
    ):
        return False
    for key, expected in (resource_filter.arguments or {}).items():
        if resource.argument(key) != expected:
            return False
    return True
