"""Naming helpers shared by the builders and generators."""
import re

ENTITY_SUFFIXES = ("Model", "Entity", "Dto")


def to_snake_case(name: str) -> str:
    """Convert PascalCase or camelCase to snake_case."""
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    s2 = re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1)
    return s2.lower()


def to_pascal_case(name: str) -> str:
    """Convert snake_case or camelCase to PascalCase."""
    parts = re.split(r"[_\-\s]+", name)
    return "".join(p[:1].upper() + p[1:] for p in parts if p)


def to_camel_case(name: str) -> str:
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def singularize(word: str) -> str:
    """Naive singular form; no irregular plurals."""
    if word.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if word.endswith("s") and not word.endswith(("ss", "us", "is")) and len(word) > 1:
        return word[:-1]
    return word


def to_table_name(entity_name: str) -> str:
    """PascalCase class name to a singular snake_case table name."""
    stem = entity_name
    for suffix in ENTITY_SUFFIXES:
        if stem.endswith(suffix) and len(stem) > len(suffix):
            stem = stem[: -len(suffix)]
            break
    return singularize(to_snake_case(stem))
