from collections.abc import Iterable

from .exceptions import EmptyCollection, InvalidIdentifier
from .types import BulkSelector


def validate(hash_: object) -> str:
    if not isinstance(hash_, str):
        raise InvalidIdentifier(hash_)
    rv = hash_.strip()
    if not rv:
        raise InvalidIdentifier(hash_)
    return rv


def validate_set(hashes: Iterable[str] | None) -> BulkSelector:
    """
    Validates an explicit list of hashes.
    Order and duplicates are kept as given.
    """
    if hashes is None or isinstance(hashes, str):
        raise EmptyCollection("hashes")
    try:
        rv = tuple(validate(_) for _ in hashes)
    except InvalidIdentifier as e:
        raise EmptyCollection("hashes") from e
    if not rv:
        raise EmptyCollection("hashes")
    return BulkSelector(hashes=rv)


def validate_names(values: Iterable[str] | None, what: str) -> str:
    """Newline-joined list used by category and tracker commands."""
    if values is None or isinstance(values, str):
        raise EmptyCollection(what)
    rv: list[str] = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            raise EmptyCollection(what)
        rv.append(value)
    if not rv:
        raise EmptyCollection(what)
    return "\n".join(rv)
