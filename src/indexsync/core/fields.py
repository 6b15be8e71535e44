"""Field selection — Which schema fields are searchable."""

from __future__ import annotations

from indexsync.models.schema import FieldSpec, SchemaDescriptor


def is_indexed(spec: FieldSpec) -> bool:
    """Return True if a top-level field belongs in index documents.

    A simple field is indexed unless it is flagged ``no_index``. An object
    field is left out only when every one of its sub-keys is flagged
    ``no_index``; an object with no sub-keys stays in.
    """
    if spec.is_object:
        subfields = spec.subfields or {}
        return not subfields or not all(sub.no_index for sub in subfields.values())
    return not spec.no_index


def select_fields(schema: SchemaDescriptor) -> frozenset[str]:
    """Derive the set of indexable top-level field names from a schema."""
    return frozenset(name for name, spec in schema.items() if is_indexed(spec))
