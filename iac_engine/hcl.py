"""
HCL Rendering Module.

This module contains the small amount of HCL formatting the engine needs:
quoting literals, rendering JSON-like values, and a block builder that lays
attributes out the way `terraform fmt` does (consecutive single-line
attributes share an aligned `=` column). It is a writer only; the engine
never parses HCL.
"""

import re
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

INDENT = "  "
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


class Expression(str):
    """A raw HCL expression (reference, variable, function call) rendered without quotes."""


def quote(value: str, literal: bool = False) -> str:
    """
    Render a Python string as a quoted HCL string.

    Args:
        value: The string to quote
        literal: Also escape template sequences (``${``, ``%{``) so the value is
            taken verbatim; used for secrets and other untrusted text

    Returns:
        The quoted string
    """
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    if literal:
        escaped = escaped.replace("${", "$${").replace("%{", "%%{")
    return f'"{escaped}"'


def render_key(key: str) -> str:
    """Object keys that are not plain identifiers must be quoted."""
    return key if _IDENTIFIER.match(key) else quote(key)


def render_value(value: Any, indent: int = 0) -> str:
    """
    Render a JSON-like Python value as an HCL expression.

    Lists of scalars stay on one line; lists containing objects and all
    non-empty mappings are rendered across several lines, indented relative to
    ``indent``.
    """
    if isinstance(value, Expression):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, Mapping):
        if not value:
            return "{}"
        inner = INDENT * (indent + 1)
        pairs = [(render_key(str(k)), v) for k, v in value.items()]
        width = max(len(k) for k, _ in pairs)
        lines = [f"{inner}{k.ljust(width)} = {render_value(v, indent + 1)}" for k, v in pairs]
        return "{\n" + "\n".join(lines) + "\n" + INDENT * indent + "}"
    if isinstance(value, (list, tuple)):
        if any(isinstance(item, (Mapping, list, tuple)) for item in value):
            inner = INDENT * (indent + 1)
            lines = [f"{inner}{render_value(item, indent + 1)}," for item in value]
            return "[\n" + "\n".join(lines) + "\n" + INDENT * indent + "]"
        return "[" + ", ".join(render_value(item, indent) for item in value) + "]"
    return quote(str(value))


class Block:
    """
    An HCL block under construction.

    Items are kept in insertion order; ``None`` attribute values are skipped so
    callers can pass optional settings through unconditionally.
    """

    def __init__(self, block_type: str, *labels: str) -> None:
        self.block_type = block_type
        self.labels = labels
        self._items: List[Union[Tuple[str, Any], "Block", None]] = []

    def attribute(self, key: str, value: Any) -> "Block":
        if value is not None:
            self._items.append((key, value))
        return self

    def attributes(self, pairs: Sequence[Tuple[str, Any]]) -> "Block":
        for key, value in pairs:
            self.attribute(key, value)
        return self

    def block(self, block_type: str, *labels: str) -> "Block":
        child = Block(block_type, *labels)
        self._items.append(child)
        return child

    def blank(self) -> "Block":
        """Visual separator; collapsed when it would be leading, trailing or doubled."""
        self._items.append(None)
        return self

    def render(self, indent: int = 0) -> str:
        pad = INDENT * indent
        header = " ".join([self.block_type] + [quote(label) for label in self.labels])
        lines = [f"{pad}{header} {{"]
        lines.extend(self._render_body(indent + 1))
        lines.append(f"{pad}}}")
        return "\n".join(lines)

    def _render_body(self, indent: int) -> List[str]:
        pad = INDENT * indent
        lines: List[str] = []
        run: List[Tuple[str, str]] = []

        def flush() -> None:
            if not run:
                return
            width = max(len(k) for k, _ in run)
            lines.extend(f"{pad}{k.ljust(width)} = {v}" for k, v in run)
            run.clear()

        previous: Optional[str] = None
        for item in self._items:
            if item is None:
                flush()
                if lines and previous != "blank":
                    lines.append("")
                    previous = "blank"
                continue
            if isinstance(item, Block):
                flush()
                if lines and previous not in ("blank", None):
                    lines.append("")
                lines.append(item.render(indent))
                previous = "block"
                continue
            key, value = item
            rendered = render_value(value, indent)
            if "\n" in rendered:
                flush()
                lines.append(f"{pad}{key} = {rendered}")
                previous = "multiline"
            else:
                if previous == "block":
                    lines.append("")
                run.append((key, rendered))
                previous = "attribute"
        flush()
        while lines and lines[-1] == "":
            lines.pop()
        return lines
