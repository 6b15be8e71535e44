"""Document serializer — Turns a primary record into an index document body."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python

from indexsync.adapters.base.exceptions import ConfigurationError
from indexsync.core.exceptions import SerializationError
from indexsync.models.document import IndexDocument
from indexsync.models.options import ConnectionOptions
from indexsync.models.record import PrimaryRecord, Reference


def _flatten_references(value: Any) -> Any:
    """Replace references (and populated records) with the plain referenced id.

    Self-referencing containers exhaust the recursion limit.
    """
    if isinstance(value, Reference):
        return value.id
    if isinstance(value, PrimaryRecord):
        return value.id
    if isinstance(value, Mapping):
        return {k: _flatten_references(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_flatten_references(v) for v in value]
    return value


def serialize(record: PrimaryRecord, fields: Iterable[str]) -> dict[str, Any]:
    """Build the index document body for ``record``.

    Only fields in ``fields`` that the record actually holds are included.

    Args:
        record: The record snapshot.
        fields: Indexed field names, as returned by ``select_fields``.

    Returns:
        A JSON-compatible mapping.

    Raises:
        SerializationError: If a value has no JSON representation.
    """
    wanted = frozenset(fields)
    body: dict[str, Any] = {}
    for name, value in record.values.items():
        if name not in wanted:
            continue
        try:
            body[name] = to_jsonable_python(_flatten_references(value))
        except (PydanticSerializationError, TypeError, ValueError, RecursionError) as e:
            raise SerializationError(
                f"Field '{name}' of record {record.id!r} cannot be serialized: {e}",
                field=name,
            ) from e
    return body


def build_document(record: PrimaryRecord, fields: Iterable[str], options: ConnectionOptions) -> IndexDocument:
    """Serialize ``record`` and address it with the resolved index and type.

    Raises:
        SerializationError: If a value has no JSON representation.
    """
    if not options.index or not options.type:
        raise ConfigurationError("Index documents need both 'index' and 'type' options")
    return IndexDocument(
        index=options.index,
        type=options.type,
        id=record.document_id,
        body=serialize(record, fields),
    )
