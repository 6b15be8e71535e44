"""Schema descriptor — Field declarations of a primary-store collection."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_OPTION_KEYS = frozenset({"type", "no_index"})


class FieldSpec(BaseModel):
    """Declaration of one schema field.

    A field with ``subfields`` is an object field; any other field is a
    simple value.
    """

    model_config = ConfigDict(frozen=True)

    no_index: bool = Field(default=False, description="Keep this field out of the search index")
    subfields: dict[str, FieldSpec] | None = Field(default=None, description="Sub-keys of an object field")

    @property
    def is_object(self) -> bool:
        return self.subfields is not None

    @classmethod
    def simple(cls, *, no_index: bool = False) -> FieldSpec:
        return cls(no_index=no_index)

    @classmethod
    def object(cls, subfields: Mapping[str, Any]) -> FieldSpec:
        return cls(subfields={name: _parse_decl(decl) for name, decl in subfields.items()})


class SchemaDescriptor(BaseModel):
    """Ordered, immutable mapping of field name to ``FieldSpec``.

    Example:
        >>> schema = SchemaDescriptor.from_mapping({
        ...     "name": str,
        ...     "password": {"type": str, "no_index": True},
        ...     "address": {"street": str, "zip": {"no_index": True}},
        ... })
        >>> schema["password"].no_index
        True
    """

    model_config = ConfigDict(frozen=True)

    declarations: dict[str, FieldSpec] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, tree: Mapping[str, Any]) -> SchemaDescriptor:
        """Build a descriptor from a plain nested declaration mapping.

        Each value may be a ``FieldSpec``, an options dict holding only
        ``type``/``no_index`` keys (a simple field), any other dict (an object
        field whose values are declarations in turn), or anything else (a
        simple, indexed field).
        """
        return cls(declarations={name: _parse_decl(decl) for name, decl in tree.items()})

    def __getitem__(self, name: str) -> FieldSpec:
        return self.declarations[name]

    def items(self) -> Iterator[tuple[str, FieldSpec]]:
        return iter(self.declarations.items())


def _parse_decl(decl: Any) -> FieldSpec:
    if isinstance(decl, FieldSpec):
        return decl
    if isinstance(decl, Mapping):
        if decl and set(decl) <= _OPTION_KEYS:
            return FieldSpec.simple(no_index=bool(decl.get("no_index", False)))
        return FieldSpec.object(decl)
    return FieldSpec.simple()
