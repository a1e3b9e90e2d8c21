"""Search filters and their compiled predicate.

A caller's filter object is validated into :class:`SearchFilters`, then
compiled into a :class:`Predicate`: a tuple of small clause objects, one per
filter kind. Each clause knows how to render itself as SQL and how to test an
in-memory entry, so every retrieval channel applies the same eligibility rule
from the same compiled object.

Example::

    predicate = compile_filters({"date_from": "2024-01-01", "tags": ["travel"]})
    where_sql, params = predicate.to_sql(first_param=3)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from smriti.core.exceptions import ConfigurationError, InvalidFilter

from .models import JournalEntry

FILTER_KEYS = ("date_from", "date_to", "city", "starred", "tags")


def _parse_date(value: Any, key: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            raise InvalidFilter(f"{key} must be a date in YYYY-MM-DD format. Received {value!r}.") from None
    raise InvalidFilter(f"{key} must be a date in YYYY-MM-DD format. Received {value!r}.")


@dataclass(frozen=True)
class SearchFilters:
    """Validated search filters. Every field is optional; None means "no constraint".

    Attributes:
        date_from: Earliest calendar day (inclusive).
        date_to: Latest calendar day (inclusive, the whole day).
        city: City name, matched case-insensitively.
        starred: Required starred flag.
        tags: Entry must carry at least one of these tags.
    """

    date_from: date | None = None
    date_to: date | None = None
    city: str | None = None
    starred: bool | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> SearchFilters:
        """Build filters from a loosely typed mapping (tool arguments, CLI options).

        Raises:
            InvalidFilter: On unknown keys or values of the wrong shape.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise InvalidFilter(f"Filters must be a mapping. Received {type(data).__name__}.")

        unknown = sorted(set(data) - set(FILTER_KEYS))
        if unknown:
            raise InvalidFilter(f"Unknown filter(s): {', '.join(unknown)}. Allowed: {', '.join(FILTER_KEYS)}.")

        city = data.get("city")
        if city is not None and not isinstance(city, str):
            raise InvalidFilter(f"city must be a string. Received {city!r}.")

        starred = data.get("starred")
        if starred is not None and not isinstance(starred, bool):
            raise InvalidFilter(f"starred must be true or false. Received {starred!r}.")

        tags = data.get("tags")
        if tags is None:
            tags = ()
        elif not isinstance(tags, (list, tuple)):
            raise InvalidFilter(f"tags must be a list of tag names. Received {tags!r}.")
        else:
            tags = tuple(tags)
            if not all(isinstance(t, str) for t in tags):
                raise InvalidFilter(f"tags must be a list of tag names. Received {list(tags)!r}.")

        return cls(
            date_from=_parse_date(data.get("date_from"), "date_from"),
            date_to=_parse_date(data.get("date_to"), "date_to"),
            city=(city or "").strip() or None,
            starred=starred,
            tags=tuple(dict.fromkeys(t.strip() for t in tags if t.strip())),
        )


class FilterClause(Protocol):
    """One constraint, rendered for SQL and for in-memory evaluation."""

    def to_sql(self, placeholder: str) -> tuple[str, Any]: ...

    def matches(self, entry: JournalEntry, tags: Iterable[str]) -> bool: ...


def _aware(value: datetime) -> datetime:
    # Naive timestamps are taken as UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class CreatedAtOrAfter:
    since: datetime

    def to_sql(self, placeholder: str) -> tuple[str, Any]:
        return f"e.created_at >= {placeholder}", self.since

    def matches(self, entry: JournalEntry, tags: Iterable[str]) -> bool:
        return _aware(entry.created_at) >= self.since


@dataclass(frozen=True)
class CreatedBefore:
    before: datetime

    def to_sql(self, placeholder: str) -> tuple[str, Any]:
        return f"e.created_at < {placeholder}", self.before

    def matches(self, entry: JournalEntry, tags: Iterable[str]) -> bool:
        return _aware(entry.created_at) < self.before


@dataclass(frozen=True)
class CityIs:
    city: str

    def to_sql(self, placeholder: str) -> tuple[str, Any]:
        return f"lower(e.city) = lower({placeholder})", self.city

    def matches(self, entry: JournalEntry, tags: Iterable[str]) -> bool:
        return entry.city is not None and entry.city.lower() == self.city.lower()


@dataclass(frozen=True)
class StarredIs:
    starred: bool

    def to_sql(self, placeholder: str) -> tuple[str, Any]:
        return f"e.starred = {placeholder}", self.starred

    def matches(self, entry: JournalEntry, tags: Iterable[str]) -> bool:
        return bool(entry.starred) == self.starred


@dataclass(frozen=True)
class HasAnyTag:
    tags: tuple[str, ...]

    def to_sql(self, placeholder: str) -> tuple[str, Any]:
        sql = (
            "EXISTS (SELECT 1 FROM entry_tags et JOIN tags t ON t.id = et.tag_id "
            f"WHERE et.entry_id = e.id AND t.name = ANY({placeholder}::text[]))"
        )
        return sql, list(self.tags)

    def matches(self, entry: JournalEntry, tags: Iterable[str]) -> bool:
        return not set(self.tags).isdisjoint(tags)


@dataclass(frozen=True)
class Predicate:
    """The compiled filter. An empty predicate admits every entry."""

    clauses: tuple[FilterClause, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.clauses

    def to_sql(self, first_param: int = 1) -> tuple[str, list[Any]]:
        """Render as a SQL boolean expression over alias ``e``.

        Args:
            first_param: Number of the first ``$n`` placeholder to use.

        Returns:
            ``(sql, params)``; ``sql`` is ``"TRUE"`` when there are no clauses.
        """
        parts: list[str] = []
        params: list[Any] = []
        for offset, clause in enumerate(self.clauses):
            sql, value = clause.to_sql(f"${first_param + offset}")
            parts.append(sql)
            params.append(value)
        return (" AND ".join(parts) if parts else "TRUE"), params

    def matches(self, entry: JournalEntry, tags: Iterable[str] = ()) -> bool:
        tag_set = frozenset(tags)
        return all(clause.matches(entry, tag_set) for clause in self.clauses)


def resolve_timezone(name: str):
    """Return a tzinfo for ``name``; raises ConfigurationError for unknown zones."""
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"Unknown timezone: {name!r}") from None


def compile_filters(filters: SearchFilters | Mapping[str, Any] | None, tz: str = "UTC") -> Predicate:
    """Compile filters into a :class:`Predicate`.

    Calendar days are interpreted in ``tz``: ``date_from`` starts at midnight
    of that day, ``date_to`` ends just before midnight of the following day.

    Raises:
        InvalidFilter: If a mapping is given and fails validation.
    """
    if not isinstance(filters, SearchFilters):
        filters = SearchFilters.from_dict(filters)

    zone = resolve_timezone(tz)
    clauses: list[FilterClause] = []

    if filters.date_from is not None:
        clauses.append(CreatedAtOrAfter(datetime.combine(filters.date_from, time.min, tzinfo=zone)))
    if filters.date_to is not None:
        try:
            next_day = filters.date_to + timedelta(days=1)
        except OverflowError:
            raise InvalidFilter(f"date_to is out of range: {filters.date_to.isoformat()}") from None
        clauses.append(CreatedBefore(datetime.combine(next_day, time.min, tzinfo=zone)))
    if filters.city:
        clauses.append(CityIs(filters.city))
    if filters.starred is not None:
        clauses.append(StarredIs(filters.starred))
    if filters.tags:
        clauses.append(HasAnyTag(filters.tags))

    return Predicate(tuple(clauses))
