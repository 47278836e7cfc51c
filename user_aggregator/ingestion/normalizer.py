"""
Field normalization for heterogeneous user payloads.

Sources disagree on field names (first_name vs firstName vs name.first)
and on payload shape (bare object, array, or an envelope wrapping a
list). This module flattens a payload into raw items and maps each item
onto the User schema using an ordered table of accessors per attribute.

Key matching is case-insensitive at every level.
"""

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from user_aggregator.ingestion.schemas import NULL_SENTINEL, User

logger = structlog.get_logger(__name__)

# Envelope keys checked in order before falling back to any list of objects
ENVELOPE_KEYS: tuple[str, ...] = ("results", "users", "data", "items", "records")

FieldAccessor = Callable[[Mapping[str, Any]], Any]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (Mapping, list)):
        return not value
    return False


def _lower_keys(obj: Mapping[str, Any]) -> dict[str, Any]:
    """
    Copy a mapping with lowercased string keys.

    When keys collide after lowercasing, the first non-blank value wins.
    """
    lowered: dict[str, Any] = {}
    for key, value in obj.items():
        folded = str(key).lower()
        if folded not in lowered or (_is_blank(lowered[folded]) and not _is_blank(value)):
            lowered[folded] = value
    return lowered


def key(name: str) -> FieldAccessor:
    """Accessor for a top-level key."""
    lowered = name.lower()

    def access(item: Mapping[str, Any]) -> Any:
        return item.get(lowered)

    access.__name__ = f"key_{name}"
    return access


def nested(parent: str, child: str) -> FieldAccessor:
    """Accessor for a key inside a nested object (e.g. name.first)."""
    parent_key = parent.lower()
    child_key = child.lower()

    def access(item: Mapping[str, Any]) -> Any:
        inner = item.get(parent_key)
        if isinstance(inner, Mapping):
            return _lower_keys(inner).get(child_key)
        return None

    access.__name__ = f"nested_{parent}_{child}"
    return access


# Ordered candidates per target attribute; first present, non-empty value wins
FIELD_ACCESSORS: dict[str, tuple[FieldAccessor, ...]] = {
    "first_name": (
        key("first_name"),
        key("firstName"),
        key("name"),
        nested("name", "first"),
    ),
    "last_name": (
        key("last_name"),
        key("lastName"),
        nested("name", "last"),
    ),
    "email": (key("email"),),
    "source_id": (key("id"),),
}


def coerce_value(value: Any) -> str | None:
    """
    Convert a raw JSON value to a field string.

    Strings have runs of whitespace (including newlines) collapsed to a
    single space; numbers and booleans are stringified. Characters that
    cannot be encoded as UTF-8, such as lone surrogates, become "?". Nulls,
    empty strings, objects and arrays count as absent.
    """
    if value is None or isinstance(value, (Mapping, list)):
        return None
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = " ".join(str(value).split())
    text = text.encode("utf-8", "replace").decode("utf-8")
    return text or None


def lookup(item: Mapping[str, Any], attribute: str) -> str | None:
    """
    Resolve one target attribute from a raw item.

    Args:
        item: Raw item with lowercased keys
        attribute: Target attribute name (a key of FIELD_ACCESSORS)

    Returns:
        First present, non-empty candidate value, or None
    """
    for accessor in FIELD_ACCESSORS[attribute]:
        value = coerce_value(accessor(item))
        if value is not None:
            return value
    return None


def _has_name_field(obj: Mapping[str, Any]) -> bool:
    lowered = _lower_keys(obj)
    return any(
        lookup(lowered, attribute) is not None
        for attribute in ("first_name", "last_name")
    )


def _envelope_list(obj: Mapping[str, Any]) -> list[Any] | None:
    """Return the wrapped item list if obj looks like an envelope."""
    lowered = _lower_keys(obj)
    for envelope_key in ENVELOPE_KEYS:
        value = lowered.get(envelope_key)
        if isinstance(value, list):
            return value

    # Unknown keys only count when the list holds at least one named record
    for value in obj.values():
        if (
            isinstance(value, list)
            and value
            and all(isinstance(entry, Mapping) for entry in value)
            and any(_has_name_field(entry) for entry in value)
        ):
            return value
    return None


def iter_raw_items(payload: Any, source_url: str = "") -> Iterator[Mapping[str, Any]]:
    """
    Flatten a payload into raw items.

    - Array: each element is a raw item
    - Envelope object: the wrapped list is flattened
    - Any other object: the object itself is one raw item

    Non-object array elements are skipped with a warning.
    """
    if isinstance(payload, list):
        entries = payload
    elif isinstance(payload, Mapping):
        wrapped = None if _has_name_field(payload) else _envelope_list(payload)
        entries = wrapped if wrapped is not None else [payload]
    else:
        logger.warning(
            "Skipping payload",
            source_url=source_url,
            reason=f"unsupported payload type {type(payload).__name__}",
        )
        return

    for index, entry in enumerate(entries):
        if isinstance(entry, Mapping):
            yield entry
        else:
            logger.warning(
                "Skipping item",
                source_url=source_url,
                index=index,
                reason=f"non-object item: {type(entry).__name__}",
            )


def normalize_item(
    item: Mapping[str, Any],
    source_url: str,
    require_email: bool = False,
) -> User | None:
    """
    Map one raw item onto the User schema.

    Args:
        item: Raw item as received from the source
        source_url: URL of the originating source (source_id fallback)
        require_email: Also reject items without an email

    Returns:
        User, or None if the item lacks required fields
    """
    lowered = _lower_keys(item)

    first_name = lookup(lowered, "first_name")
    last_name = lookup(lowered, "last_name")
    email = lookup(lowered, "email")

    missing = [
        name
        for name, value in (("first_name", first_name), ("last_name", last_name))
        if value is None
    ]
    if require_email and email is None:
        missing.append("email")

    if missing:
        logger.warning(
            "Skipping record",
            source_url=source_url,
            reason=f"missing {', '.join(missing)}",
        )
        return None

    return User(
        first_name=first_name,
        last_name=last_name,
        email=email or NULL_SENTINEL,
        source_id=lookup(lowered, "source_id") or source_url,
    )


@dataclass
class NormalizerStats:
    """Counters for normalized items."""

    accepted: int = 0
    skipped: int = 0
    skipped_by_source: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.accepted + self.skipped


class UserNormalizer:
    """
    Turns raw source payloads into User records.

    Malformed items are skipped and counted; they never abort the
    remaining items of a payload.

    Usage:
        normalizer = UserNormalizer()
        users = normalizer.normalize(payload, "https://api.example.com/users")
        print(normalizer.stats.skipped)
    """

    def __init__(self, require_email: bool = False):
        """
        Args:
            require_email: Reject items that have no email address
        """
        self.require_email = require_email
        self._stats = NormalizerStats()

    def normalize(self, payload: Any, source_url: str) -> list[User]:
        """
        Normalize every raw item of a payload.

        Args:
            payload: Parsed JSON object or array
            source_url: URL the payload came from

        Returns:
            Accepted users in payload order
        """
        users: list[User] = []
        for item in iter_raw_items(payload, source_url):
            user = normalize_item(item, source_url, require_email=self.require_email)
            if user is None:
                self._stats.skipped += 1
                self._stats.skipped_by_source[source_url] = (
                    self._stats.skipped_by_source.get(source_url, 0) + 1
                )
                continue
            self._stats.accepted += 1
            users.append(user)
        return users

    def reset_stats(self) -> None:
        self._stats = NormalizerStats()

    @property
    def stats(self) -> NormalizerStats:
        """Get counters accumulated since the last reset."""
        return self._stats
