"""Cheap text heuristics for files the engine cannot parse."""

from __future__ import annotations

import re

# A port declaration at the start of a line
PORT_DECLARATION_RE = re.compile(r"\nport [a-z][a-zA-Z0-9_]*'? =")


def has_port_declaration(content: str) -> bool:
    return PORT_DECLARATION_RE.search(content) is not None


def has_legacy_module_header(content: str) -> bool:
    """``module Foo (..) where`` on the first line (pre-0.17 header syntax)."""
    first_line = content.split("\n", 1)[0]
    return first_line.startswith("module") and "where" in first_line


def should_skip(content: str) -> bool:
    """Return True when the file should not be submitted to the engine."""
    return has_port_declaration(content) or has_legacy_module_header(content)
