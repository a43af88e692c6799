"""Generic multi-key sorting and filtering over joined (enriched) records.

A sort key resolves in three tiers:

  1. an own field of the enriched record with exactly that (undotted) name,
  2. an own field of the record's primary entity (``cycle`` by default),
  3. a dotted path walked from the enriched record (``module.code``),
     yielding ``None`` as soon as a segment is missing.

``None`` values always sort after present ones, in both directions. Equal
keys keep their input order (the sort is stable).
"""

from __future__ import annotations

import dataclasses
import locale
from collections.abc import Callable, Iterable, Mapping, Sequence
from functools import cmp_to_key
from typing import Any, TypeVar

from pydantic import BaseModel

from app.models.enums import SortDirectionEnum

T = TypeVar("T")
Extractor = Callable[[Any], Any]

ALL_SENTINEL = "all"

_MISSING = object()


def _own_field(obj: Any, name: str) -> Any:
	if obj is None:
		return _MISSING
	if isinstance(obj, Mapping):
		return obj[name] if name in obj else _MISSING
	if isinstance(obj, BaseModel):
		return getattr(obj, name) if name in type(obj).model_fields else _MISSING
	if dataclasses.is_dataclass(obj):
		names = {field.name for field in dataclasses.fields(obj)}
		return getattr(obj, name) if name in names else _MISSING
	attrs = getattr(obj, "__dict__", None)
	if attrs is not None and name in attrs:
		return attrs[name]
	return _MISSING


def walk_path(obj: Any, path: str) -> Any:
	"""Follow a dotted path through mapping keys and declared fields only."""
	value = obj
	for segment in path.split("."):
		value = _own_field(value, segment)
		if value is _MISSING:
			return None
	return value


class KeyAccessors:
	"""Maps sort keys to extractor functions.

	Explicitly registered extractors win; any other key gets a three-tier
	resolver built for that call. Only registered keys are retained.
	"""

	def __init__(self, primary_field: str = "cycle", extractors: Mapping[str, Extractor] | None = None):
		self.primary_field = primary_field
		self._extractors: dict[str, Extractor] = dict(extractors or {})

	def register(self, key: str, extractor: Extractor) -> None:
		self._extractors[key] = extractor

	def get(self, key: str) -> Extractor:
		extractor = self._extractors.get(key)
		if extractor is None:
			return self._build_tiered(key)
		return extractor

	def resolve(self, record: Any, key: str) -> Any:
		return self.get(key)(record)

	def _build_tiered(self, key: str) -> Extractor:
		primary_field = self.primary_field

		def extract(record: Any) -> Any:
			value = _own_field(record, key)
			if value is not _MISSING:
				return value
			primary = _own_field(record, primary_field)
			if primary is not _MISSING:
				value = _own_field(primary, key)
				if value is not _MISSING:
					return value
			return walk_path(record, key)

		return extract


def _locale_key(value: str) -> tuple[str, str]:
	folded = value.casefold()
	try:
		return folded, locale.strxfrm(value)
	except (OSError, ValueError):
		return folded, value


def compare_values(left: Any, right: Any) -> int:
	"""Three-way compare of two present values (strings locale-aware)."""
	if isinstance(left, str) and isinstance(right, str):
		left, right = _locale_key(left), _locale_key(right)
	try:
		if left < right:
			return -1
		if left > right:
			return 1
		return 0
	except TypeError:
		return compare_values(str(left), str(right))


def sort_records(
	records: Iterable[T],
	key: str,
	direction: SortDirectionEnum | str = SortDirectionEnum.ascending,
	accessors: KeyAccessors | None = None,
) -> list[T]:
	"""Return a new list ordered by ``key``; the input is never mutated."""
	accessors = accessors or KeyAccessors()
	extract = accessors.get(key)
	descending = SortDirectionEnum(direction) == SortDirectionEnum.descending

	present: list[tuple[T, Any]] = []
	missing: list[T] = []
	for record in records:
		value = extract(record)
		if value is None:
			missing.append(record)
		else:
			present.append((record, value))

	ordered = sorted(
		present,
		key=cmp_to_key(lambda a, b: compare_values(a[1], b[1])),
		reverse=descending,
	)
	return [record for record, _ in ordered] + missing


def toggle_direction(
	current_key: str,
	current_direction: SortDirectionEnum,
	requested_key: str,
) -> SortDirectionEnum:
	"""Ascending on a new key; flips ascending to descending on a repeated key."""
	if current_key == requested_key and current_direction == SortDirectionEnum.ascending:
		return SortDirectionEnum.descending
	return SortDirectionEnum.ascending


def is_active_filter(value: Any) -> bool:
	return value is not None and str(value) != ALL_SENTINEL


def filter_records(
	records: Sequence[T],
	filters: Mapping[str, Any],
	dimensions: Mapping[str, Extractor],
) -> list[T]:
	"""AND together one equality predicate per active filter dimension."""
	active: list[tuple[Extractor, str]] = []
	for name, value in filters.items():
		if not is_active_filter(value):
			continue
		if name not in dimensions:
			raise ValueError(f"unknown filter dimension {name!r}")
		active.append((dimensions[name], str(value)))

	if not active:
		return list(records)

	result: list[T] = []
	for record in records:
		if all(_matches(extract(record), wanted) for extract, wanted in active):
			result.append(record)
	return result


def _matches(value: Any, wanted: str) -> bool:
	return value is not None and str(value) == wanted
