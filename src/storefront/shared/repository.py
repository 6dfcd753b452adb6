"""Generic data access over protean-backed rows.

A ``Repository`` works on plain domain entities and stores them as protean
aggregates ("records"). Each concrete repository supplies the mapping pair
``from_row`` / ``to_row``; ``to_row`` leaves out every field whose value is
``None`` so a partial update never overwrites a stored value with null.

``RepositoryFactory`` hands out one repository per entity type for the
lifetime of the process.
"""

import dataclasses
import math
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.utils.logging import get_logger

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_SORT_FIELD = "created_at"

# Upper bound per query when walking every row
_SCAN_BATCH = 100


@dataclass(frozen=True)
class Sort:
    field: str = DEFAULT_SORT_FIELD
    descending: bool = True

    @property
    def expression(self) -> str:
        return f"-{self.field}" if self.descending else self.field


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class SearchCriteria:
    filters: dict[str, Any] = field(default_factory=dict)
    sort: Sort = field(default_factory=Sort)
    pagination: Pagination = field(default_factory=Pagination)


@dataclass(frozen=True)
class Page(Generic[T]):
    data: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def omit_none(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def entity_fields(entity: Any) -> dict[str, Any]:
    """Shallow field mapping of a dataclass entity."""
    return {f.name: getattr(entity, f.name) for f in dataclasses.fields(entity)}


class Repository(ABC, Generic[T]):
    """CRUD plus criteria search over a single entity type."""

    record_cls: type

    def __init__(self, logger=None):
        self._logger = logger or get_logger(__name__)

    # -------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------
    @abstractmethod
    def from_row(self, record: Any) -> T:
        """Build a domain entity from a stored record."""
        ...

    @abstractmethod
    def to_row(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Translate entity fields into record fields, dropping ``None`` values."""
        ...

    # -------------------------------------------------------------------
    # Storage access
    # -------------------------------------------------------------------
    @property
    def _repo(self):
        return current_domain.repository_for(self.record_cls)

    def _get_record(self, id: str):
        try:
            return self._repo.get(id)
        except ObjectNotFoundError:
            return None

    def _query(self, filters: Mapping[str, Any] | None = None):
        query = self._repo._dao.query
        filters = omit_none(filters or {})
        if filters:
            query = query.filter(**filters)
        return query

    def _apply_changes(self, record: Any, row: Mapping[str, Any]) -> None:
        for key, value in row.items():
            setattr(record, key, value)

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def find_by_id(self, id: str) -> T | None:
        record = self._get_record(id)
        return self.from_row(record) if record is not None else None

    def find_all(self, **filters: Any) -> list[T]:
        """Every matching entity, newest first."""
        query = self._query(filters).order_by(Sort().expression)
        entities: list[T] = []
        offset = 0
        while True:
            result = query.offset(offset).limit(_SCAN_BATCH).all()
            entities.extend(self.from_row(record) for record in result.items)
            offset += _SCAN_BATCH
            if offset >= result.total:
                return entities

    def create(self, entity: T) -> T:
        now = datetime.now(UTC)
        row = self.to_row({**entity_fields(entity), "created_at": now, "updated_at": now})
        record = self.record_cls(**row)
        self._repo.add(record)
        self._logger.debug("record_created", record=self.record_cls.__name__, id=record.id)
        return self.from_row(self._repo.get(record.id))

    def update(self, id: str, **changes: Any) -> T | None:
        """Apply ``changes`` to the stored row; ``None`` values are ignored."""
        record = self._get_record(id)
        if record is None:
            return None

        row = self.to_row({**changes, "updated_at": datetime.now(UTC)})
        row.pop("id", None)
        self._apply_changes(record, row)
        self._repo.add(record)
        self._logger.debug("record_updated", record=self.record_cls.__name__, id=id, fields=sorted(row))
        return self.from_row(self._repo.get(id))

    def delete(self, id: str) -> bool:
        record = self._get_record(id)
        if record is None:
            return False
        self._repo._dao.delete(record)
        self._logger.debug("record_deleted", record=self.record_cls.__name__, id=id)
        return True

    def exists(self, id: str) -> bool:
        return self._query({"id": id}).all().total > 0

    def find_by_criteria(self, criteria: SearchCriteria | None = None) -> Page[T]:
        criteria = criteria or SearchCriteria()
        pagination = criteria.pagination
        result = (
            self._query(self.to_row(criteria.filters))
            .order_by(criteria.sort.expression)
            .offset(pagination.offset)
            .limit(pagination.limit)
            .all()
        )
        return Page(
            data=[self.from_row(record) for record in result.items],
            total=result.total,
            page=pagination.page,
            limit=pagination.limit,
        )


class RepositoryFactory:
    """Entity type -> repository class, one repository instance per type."""

    def __init__(self, registry: dict[type, type[Repository]] | None = None):
        self._registry: dict[type, type[Repository]] = dict(registry or {})
        self._instances: dict[type, Repository] = {}
        self._lock = threading.Lock()

    def register(self, entity_type: type, repository_cls: type[Repository]) -> None:
        with self._lock:
            self._registry[entity_type] = repository_cls
            self._instances.pop(entity_type, None)

    def get(self, entity_type: type) -> Repository:
        with self._lock:
            if entity_type not in self._instances:
                if entity_type not in self._registry:
                    raise KeyError(f"No repository registered for {entity_type.__name__}")
                self._instances[entity_type] = self._registry[entity_type]()
            return self._instances[entity_type]

    def clear(self) -> None:
        with self._lock:
            self._instances.clear()


repositories = RepositoryFactory()


def repository_for(entity_type: type) -> Repository:
    return repositories.get(entity_type)
