from collections.abc import Iterator
from typing import Any

_METADATA = "__bakery_metadata__"


def add_marker[T](obj: T, marker: object, payload: Any = None) -> T:
    if not hasattr(obj, _METADATA):
        setattr(obj, _METADATA, {})

    markers: dict[object, Any] = getattr(obj, _METADATA)
    markers[marker] = payload
    return obj


def get_methods(obj: object, marker: object) -> Iterator[tuple[str, Any, Any]]:
    """
    :return: (name, member, payload) for every marked member of `obj`'s class,
    in definition order, base classes first.
    Overriding a marked method without re-marking it drops the marker.
    """
    seen: set[str] = set()
    for cls in reversed(obj.__class__.__mro__):
        for name in vars(cls):
            if name in seen:
                continue
            member = getattr(obj.__class__, name, None)
            if has_marker(member, marker):
                seen.add(name)
                yield name, member, get_payload(member, marker)


def has_marker(obj: object, marker: object) -> bool:
    return hasattr(obj, _METADATA) and marker in getattr(obj, _METADATA)


def get_payload(obj: object, marker: object) -> Any:
    return getattr(obj, _METADATA)[marker]
