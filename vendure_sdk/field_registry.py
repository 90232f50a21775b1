"""
Field Registry — Thread-safe store of custom field declarations.

The QueryBuilder asks the registry, at each splice point of a document, which
extra selections integrators registered for the GraphQL type at that point.
Registration usually happens once at application startup; queries are built
from any number of threads afterwards.

Rules:
  - At most one declaration exists per (is_extended, field_name,
    applicable_types) identity. Registering the same identity again replaces
    the earlier declaration in place, keeping its position.
  - Declarations are returned in insertion order, which is the order their
    fragments appear in generated documents.
  - A declaration whose fragment fails is_valid_fragment() is dropped with a
    warning. add() never raises.
  - Type names are not checked against any schema. A declaration for a type
    no builder asks about is simply never injected (see summary()).

A single lock guards every read and write, so each call observes a complete
declaration list.
"""

import logging
import threading
from typing import Iterable, List, Optional, Tuple

from .custom_fields import NATIVE_CUSTOM_FIELDS, FieldDeclaration

logger = logging.getLogger(__name__)

FRAGMENT_SEPARATOR = "\n            "

FORBIDDEN_KEYWORDS = ("mutation", "subscription")


def is_valid_fragment(fragment: str) -> bool:
    """Coarse sanity check of a selection fragment.

    Rejects empty text, text mentioning a write operation keyword, and text
    whose curly braces do not balance. This is a count, not a parse: braces
    inside string literals are counted too.
    """
    trimmed = (fragment or "").strip()
    if not trimmed:
        return False

    lowered = trimmed.lower()
    if any(keyword in lowered for keyword in FORBIDDEN_KEYWORDS):
        return False

    return trimmed.count("{") == trimmed.count("}")


class FieldRegistry:
    """Registry of FieldDeclaration objects keyed by applicability.

    One instance is normally owned by the application's composition root
    (see vendure_sdk.client.Vendure) and handed to the QueryBuilder.

    Attributes:
        cache_backend_enabled: When True, search documents request the
            cacheIdentifier block used by edge GraphQL caches.
    """

    def __init__(self, declarations: Optional[Iterable[FieldDeclaration]] = None):
        self._declarations: List[FieldDeclaration] = []
        self._cache_backend_enabled = False
        self._lock = threading.Lock()
        if declarations:
            self.add_all(declarations)

    # ── Registration ──────────────────────────────────────────────

    def add(self, declaration: FieldDeclaration) -> None:
        """Register a declaration, replacing any with the same identity.

        Invalid fragments are logged at WARNING and ignored.
        """
        if not is_valid_fragment(declaration.fragment):
            logger.warning(
                "Invalid GraphQL fragment for field '%s' (types: %s), declaration ignored",
                declaration.field_name,
                ", ".join(sorted(declaration.applicable_types)),
            )
            return

        with self._lock:
            for index, existing in enumerate(self._declarations):
                if existing.identity == declaration.identity:
                    self._declarations[index] = declaration
                    logger.debug("Replaced custom field '%s'", declaration.field_name)
                    return
            self._declarations.append(declaration)

        logger.debug(
            "Registered %s field '%s' for %s",
            "extended" if declaration.is_extended else "native",
            declaration.field_name,
            ", ".join(sorted(declaration.applicable_types)),
        )

    def add_all(self, declarations: Iterable[FieldDeclaration]) -> None:
        for declaration in declarations:
            self.add(declaration)

    def remove(self, field_name: str, types: Iterable[str]) -> None:
        """Remove declarations whose field name and type set match exactly."""
        if isinstance(types, str):
            types = [types]
        wanted = frozenset(types)
        with self._lock:
            self._declarations = [
                d for d in self._declarations
                if not (d.field_name == field_name and d.applicable_types == wanted)
            ]

    def clear(self) -> None:
        with self._lock:
            self._declarations = []

    # ── Lookup ────────────────────────────────────────────────────

    @property
    def declarations(self) -> Tuple[FieldDeclaration, ...]:
        """Snapshot of every declaration, in insertion order."""
        with self._lock:
            return tuple(self._declarations)

    def __len__(self) -> int:
        with self._lock:
            return len(self._declarations)

    def query_for(self, type_name: str) -> List[FieldDeclaration]:
        """All declarations applicable to type_name, in insertion order."""
        with self._lock:
            return [d for d in self._declarations if d.applies_to(type_name)]

    def query_extended_for(self, type_name: str) -> List[FieldDeclaration]:
        return [d for d in self.query_for(type_name) if d.is_extended]

    def query_native_custom_fields_for(self, type_name: str) -> Optional[FieldDeclaration]:
        """The first native customFields declaration for type_name, if any.

        A type covered by several customFields declarations with different
        type sets still has all of them returned by query_for().
        """
        for declaration in self.query_for(type_name):
            if not declaration.is_extended and declaration.field_name == NATIVE_CUSTOM_FIELDS:
                return declaration
        return None

    def has_any(self, type_name: str) -> bool:
        return bool(self.query_for(type_name))

    def should_include(self, type_name: str, explicit_request: Optional[bool] = None) -> bool:
        """Decide whether custom fields of type_name go into a document.

        An explicit True/False from the caller wins; otherwise include them
        only when something is registered for the type.
        """
        if explicit_request is not None:
            return bool(explicit_request)
        return self.has_any(type_name)

    # ── Injection ─────────────────────────────────────────────────

    def inject_fragment(self, type_name: str, include: bool = True) -> str:
        """Fragments for type_name joined for splicing, or "" if none."""
        if not include:
            return ""
        return FRAGMENT_SEPARATOR.join(d.fragment for d in self.query_for(type_name))

    def build_fragment(self, type_name: str, base_fields: Iterable[str], include: bool = True) -> str:
        """Base fields followed by the custom fragments for type_name."""
        parts = list(base_fields)
        if include:
            parts.extend(d.fragment for d in self.query_for(type_name))
        return FRAGMENT_SEPARATOR.join(parts)

    # ── Cache backend flag ────────────────────────────────────────

    @property
    def cache_backend_enabled(self) -> bool:
        with self._lock:
            return self._cache_backend_enabled

    def set_cache_backend(self, enabled: bool) -> None:
        with self._lock:
            self._cache_backend_enabled = bool(enabled)

    # ── Debugging ─────────────────────────────────────────────────

    def summary(self) -> str:
        """Human-readable listing of every registered declaration."""
        declarations = self.declarations
        lines = [
            "FieldRegistry summary:",
            f"Total custom fields: {len(declarations)}",
        ]
        if not declarations:
            lines.append("No custom fields configured.")
        for d in declarations:
            kind = "Extended" if d.is_extended else "CustomField"
            lines.append(f"[{kind}] {d.field_name} -> [{', '.join(sorted(d.applicable_types))}]")
        return "\n".join(lines)


_default_registry = FieldRegistry()


def default_registry() -> FieldRegistry:
    """Process-wide registry used by a QueryBuilder created without one."""
    return _default_registry
