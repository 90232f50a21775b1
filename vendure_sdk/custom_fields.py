"""
Custom Fields — Declarations of integrator-defined GraphQL selections.

A FieldDeclaration describes one extra selection that should be spliced into
generated documents for a set of GraphQL types. There are two kinds:

  Extended fields   Added to the schema by a Vendure plugin
                    (e.g. "mainUsdzAsset { id name source }"). The fragment is
                    selected like any native field.

  Native custom     Entries of Vendure's built-in customFields object. The
  fields            fragment is the whole "customFields { ... }" block and the
                    declaration's field_name is always "customFields".

The classmethods at the bottom are shorthand for the common shapes; they only
assemble the fragment text.

Example:
    registry.add_all([
        FieldDeclaration.extended_asset("mainUsdzAsset", ["Product"]),
        FieldDeclaration.native_custom_fields(["color", "size"], ["ProductVariant"]),
    ])
"""

import dataclasses
from typing import Dict, FrozenSet, Iterable, List

NATIVE_CUSTOM_FIELDS = "customFields"

ASSET_FIELDS = ["id", "name", "type", "mimeType", "source", "preview"]

DETAILED_ASSET_FIELDS = ASSET_FIELDS + [
    "width",
    "height",
    "fileSize",
    "focalPoint { x y }",
    "tags { id value }",
]


@dataclasses.dataclass(frozen=True)
class FieldDeclaration:
    """A single custom field extension.

    Attributes:
        field_name: GraphQL field governed by this declaration, or
            "customFields" for a native custom fields block.
        fragment: Selection text spliced verbatim into documents.
        applicable_types: GraphQL type names the fragment applies to.
        is_extended: True for schema-extension fields, False for native
            customFields entries.
    """

    field_name: str
    fragment: str
    applicable_types: FrozenSet[str]
    is_extended: bool = False

    def __post_init__(self):
        # Accept any iterable of names; a bare string is one type name.
        types = self.applicable_types
        if isinstance(types, str):
            types = [types]
        object.__setattr__(self, "applicable_types", frozenset(types))

    @property
    def identity(self):
        """Key under which the registry keeps at most one declaration."""
        return (self.is_extended, self.field_name, self.applicable_types)

    def applies_to(self, type_name: str) -> bool:
        return type_name in self.applicable_types

    @classmethod
    def extended_asset(cls, name: str, applicable_types: Iterable[str]) -> "FieldDeclaration":
        """Extended field of type Asset with the usual asset fields."""
        return cls(
            field_name=name,
            fragment=f"{name} {{ {' '.join(ASSET_FIELDS)} }}",
            applicable_types=applicable_types,
            is_extended=True,
        )

    @classmethod
    def extended_asset_detailed(cls, name: str, applicable_types: Iterable[str]) -> "FieldDeclaration":
        """Extended Asset field including dimensions, focal point and tags."""
        lines = [f"{name} {{"] + [f"  {field}" for field in DETAILED_ASSET_FIELDS] + ["}"]
        return cls(
            field_name=name,
            fragment="\n".join(lines),
            applicable_types=applicable_types,
            is_extended=True,
        )

    @classmethod
    def extended_relation(
        cls,
        name: str,
        applicable_types: Iterable[str],
        fields: Iterable[str] = ("id", "name"),
    ) -> "FieldDeclaration":
        """Extended relation selecting a flat list of fields (ids by default)."""
        return cls(
            field_name=name,
            fragment=f"{name} {{ {' '.join(fields)} }}",
            applicable_types=applicable_types,
            is_extended=True,
        )

    @classmethod
    def extended_scalar(cls, name: str, applicable_types: Iterable[str]) -> "FieldDeclaration":
        return cls(field_name=name, fragment=name, applicable_types=applicable_types, is_extended=True)

    @classmethod
    def extended_nested_relation(
        cls,
        name: str,
        nested_fields: Dict[str, List[str]],
        applicable_types: Iterable[str],
    ) -> "FieldDeclaration":
        """Extended relation with one level of nested selections.

        An empty field list selects the key as a scalar:
            {"id": [], "owner": ["id", "name"]}  ->  name { id owner { id name } }
        """
        lines = [f"{name} {{"]
        for key, fields in nested_fields.items():
            if fields:
                lines.append(f"  {key} {{ {' '.join(fields)} }}")
            else:
                lines.append(f"  {key}")
        lines.append("}")
        return cls(
            field_name=name,
            fragment="\n".join(lines),
            applicable_types=applicable_types,
            is_extended=True,
        )

    @classmethod
    def native_custom_field(cls, name: str, applicable_types: Iterable[str]) -> "FieldDeclaration":
        """A single entry of Vendure's customFields object."""
        return cls.native_custom_fields([name], applicable_types)

    @classmethod
    def native_custom_fields(cls, names: Iterable[str], applicable_types: Iterable[str]) -> "FieldDeclaration":
        """Several customFields entries in one block."""
        return cls(
            field_name=NATIVE_CUSTOM_FIELDS,
            fragment=f"{NATIVE_CUSTOM_FIELDS} {{ {' '.join(names)} }}",
            applicable_types=applicable_types,
            is_extended=False,
        )
