"""Identifier case conversion shared by the IR builder and the backends."""

from __future__ import annotations

import re

_WORD = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9]|$|[^A-Za-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+")


def words(name: str) -> list[str]:
    """Split ``lineItems``, ``LineItem``, ``line_items`` or ``HTTPStatus`` into words."""
    return [w.lower() for w in _WORD.findall(name)]


def snake_case(name: str) -> str:
    return "_".join(words(name)) or name


def camel_case(name: str) -> str:
    parts = words(name)
    if not parts:
        return name
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


def pascal_case(name: str) -> str:
    return "".join(p.capitalize() for p in words(name)) or name


def pluralize(word: str) -> str:
    """English plural of the last word in ``word``, keeping its case style."""
    if not word:
        return word
    lower = word.lower()
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if lower.endswith("y") and len(word) > 1 and lower[-2] not in "aeiou":
        return word[:-1] + "ies"
    return word + "s"
