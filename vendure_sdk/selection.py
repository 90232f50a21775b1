"""
Selection Builder — Structural accumulator for GraphQL documents.

Documents are built as a list of indented lines with an explicit stack of
open blocks. Every open() is matched by exactly one close(), and render()
refuses to produce text while a block is still open, so optional sections can
be toggled freely without ever unbalancing the braces.

Example:
    builder = SelectionBuilder()
    with builder.operation("query", "product", {"id": "ID!"}):
        with builder.block("product(id: $id)"):
            builder.fields("id", "name")
            builder.fragment("mainUsdzAsset { id name source }")
    document = builder.render()

produces:
    query product($id: ID!) {
      product(id: $id) {
        id
        name
        mainUsdzAsset { id name source }
      }
    }
"""

import contextlib
import textwrap
from typing import Dict, List, Optional

INDENT = "  "


class SelectionBuilder:
    """Accumulates selection-set lines while tracking nesting depth."""

    def __init__(self):
        self._lines: List[str] = []
        self._stack: List[str] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    def _emit(self, text: str) -> None:
        self._lines.append(f"{INDENT * self.depth}{text}")

    def open(self, header: str) -> "SelectionBuilder":
        """Start a nested selection set: `header {`."""
        self._emit(f"{header} {{")
        self._stack.append(header)
        return self

    def close(self) -> "SelectionBuilder":
        if not self._stack:
            raise ValueError("close() called with no open selection set")
        self._stack.pop()
        self._emit("}")
        return self

    @contextlib.contextmanager
    def block(self, header: str):
        self.open(header)
        yield self
        self.close()

    @contextlib.contextmanager
    def operation(self, kind: str, name: str, variables: Optional[Dict[str, str]] = None):
        """Open the operation header, e.g. `query product($id: ID!) {`."""
        header = f"{kind} {name}"
        if variables:
            signature = ", ".join(f"${var}: {gql_type}" for var, gql_type in variables.items())
            header = f"{header}({signature})"
        with self.block(header):
            yield self

    def fields(self, *names: str) -> "SelectionBuilder":
        """Emit one line per field; entries may be inline sub-selections."""
        for name in names:
            if name:
                self._emit(name)
        return self

    def fragment(self, text: str) -> "SelectionBuilder":
        """Splice raw selection text at the current depth.

        Single-line fragments are emitted unchanged. Continuation lines of a
        multi-line fragment are dedented as a group and re-indented to the
        current depth. Empty text emits nothing.
        """
        if not text or not text.strip():
            return self
        first, _, rest = text.strip("\n").partition("\n")
        self._emit(first.strip())
        if rest:
            for line in textwrap.dedent(rest).splitlines():
                if line.strip():
                    self._emit(line.rstrip())
        return self

    def render(self) -> str:
        if self._stack:
            raise ValueError(f"unclosed selection sets: {', '.join(self._stack)}")
        return "\n".join(self._lines) + "\n"
