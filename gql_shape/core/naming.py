"""Identifier case conversion between Python and GraphQL names."""

import re


def to_snake_case(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1).lower()


def to_camel_case(name: str) -> str:
    """Convert a Python identifier to the lowerCamelCase GraphQL field name.

    ``user_name`` -> ``userName``, ``ID`` -> ``id``, ``totalCount`` is kept.
    """
    words = [w for w in to_snake_case(name).split("_") if w]
    if not words:
        return name
    return words[0] + "".join(w.capitalize() for w in words[1:])
