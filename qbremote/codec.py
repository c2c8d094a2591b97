"""Decoding at the serializer boundary."""

import json
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import dacite

from .exceptions import DecodeError


type JsonLoads = Callable[[str], Any]
type JsonDumps = Callable[[Any], str]


_CONFIG = dacite.Config(cast=[float])


def decode_text(body: bytes) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError("response is not valid UTF-8") from e


def decode_int(body: bytes) -> int:
    text = decode_text(body).strip()
    try:
        return int(text)
    except ValueError as e:
        raise DecodeError(f"expected an integer, got {text!r}") from e


def decode_json(body: bytes, loads: JsonLoads = json.loads) -> Any:
    text = decode_text(body)
    try:
        return loads(text)
    except ValueError as e:
        raise DecodeError(f"malformed JSON: {e}") from e


def negative_to_none(raw: Mapping[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    """
    The daemon reports "unset" as -1 on a handful of numeric fields.
    Only the named keys are rewritten.
    """
    rv = dict(raw)
    for key in keys:
        value = rv.get(key)
        if _is_number(value) and value < 0:
            rv[key] = None
    return rv


def decode_limits(raw: Any) -> dict[str, int | None]:
    if not isinstance(raw, dict):
        raise DecodeError(f"expected an object of limits, got {type(raw).__name__}")
    rv: dict[str, int | None] = {}
    for hash_, limit in raw.items():
        if not _is_number(limit):
            raise DecodeError(f"invalid limit for {hash_}: {limit!r}")
        rv[hash_] = None if limit < 0 else int(limit)
    return rv


def rename_keys(raw: Mapping[str, Any], names: Mapping[str, str]) -> dict[str, Any]:
    return {names.get(k, k): v for k, v in raw.items()}


def from_wire[T](
    data_class: type[T],
    raw: Any,
    *,
    negative: Iterable[str] = (),
    renames: Mapping[str, str] | None = None,
) -> T:
    if not isinstance(raw, dict):
        raise DecodeError(
            f"expected an object for {data_class.__name__}, got {type(raw).__name__}"
        )
    if renames:
        raw = rename_keys(raw, renames)
    raw = negative_to_none(raw, negative)
    try:
        return dacite.from_dict(data_class, raw, config=_CONFIG)
    except (dacite.DaciteError, TypeError, ValueError) as e:
        raise DecodeError(f"cannot decode {data_class.__name__}: {e}") from e


def list_from_wire[T](
    data_class: type[T],
    raw: Any,
    *,
    negative: Iterable[str] = (),
    renames: Mapping[str, str] | None = None,
) -> list[T]:
    if not isinstance(raw, list):
        raise DecodeError(
            f"expected a list of {data_class.__name__}, got {type(raw).__name__}"
        )
    negative = tuple(negative)
    return [
        from_wire(data_class, _, negative=negative, renames=renames) for _ in raw
    ]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
