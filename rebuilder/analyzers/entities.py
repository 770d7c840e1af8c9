"""
Entity extraction from Dart sources.

Files are selected by glob patterns over conventional model/entity locations,
class declarations are found by ``ClassScanner`` and fields are read from the
depth-one member text of each class with a regex. Uses fast file walking and
regex patterns (no full AST parsing) for performance.
"""
import fnmatch
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from rebuilder.analyzers.class_scanner import (
    ClassScanner,
    default_scanner,
    find_statement_end,
    member_text,
    parse_annotations,
)

log = logging.getLogger(__name__)

# Maximum file size to read (512KB)
MAX_FILE_SIZE = 512 * 1024

DEFAULT_ENTITY_PATTERNS = (
    "**/models/**/*.dart",
    "**/entities/**/*.dart",
    "**/domain/**/*.dart",
    "**/*_model.dart",
    "**/*_entity.dart",
)

DEFAULT_EXCLUDE_PATTERNS = (
    "*.g.dart",
    "*.freezed.dart",
    "*.mocks.dart",
)

# Directories to ignore
IGNORE_DIRS = {"build", ".dart_tool", ".git", ".idea", ".pub-cache", "node_modules"}

UI_BASE_TYPES = {
    "StatefulWidget",
    "StatelessWidget",
    "HookWidget",
    "ConsumerWidget",
    "ConsumerStatefulWidget",
    "HookConsumerWidget",
    "Widget",
    "State",
    "ConsumerState",
}

BUILTIN_TYPES = {
    "String", "int", "double", "num", "bool", "DateTime", "Duration",
    "dynamic", "Object", "Map", "Set", "List", "Iterable", "Uri", "BigInt",
    "Uint8List", "Future", "Stream", "Function", "void", "Never", "Null",
}

COLLECTION_TYPES = {"List", "Set", "Iterable"}

FIELD_PATTERN = re.compile(
    r"(?:^|(?<=;))[ \t]*(?P<annotations>(?:@\w+(?:\([^)]*\))?\s*)*)"
    r"(?P<modifiers>(?:(?:static|final|const|late|external|covariant)\s+)*)"
    r"(?P<type>[\w$<>,?.\[\] \t]+?)\s+(?P<name>\w+)"
    r"(?:\s*=\s*(?P<default>[^;]*))?\s*;",
    re.MULTILINE,
)

# Words that can start a depth-one statement but never a field type
NON_TYPE_WORDS = {"return", "throw", "get", "set", "operator", "typedef", "import", "export", "part"}

INFERRED_TYPE_WORDS = {"final", "const", "late", "var"}

GENERIC_PATTERN = re.compile(r"^(\w+)\s*<\s*([\w$.]+)\s*\??\s*>$")


@dataclass(frozen=True)
class FieldDefinition:
    name: str
    type: str
    nullable: bool
    default_value: Optional[str] = None
    annotations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Relationship:
    kind: str  # hasOne | hasMany | belongsTo
    target: str
    field_name: str


@dataclass(frozen=True)
class EntityDefinition:
    name: str
    source_path: str
    fields: Tuple[FieldDefinition, ...] = ()
    annotations: Tuple[str, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    is_immutable: bool = False
    has_serialization_markers: bool = False

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]


@dataclass
class EntityDetectionResult:
    """Result of an entity scan."""
    entities: List[EntityDefinition] = field(default_factory=list)
    files_parsed: int = 0
    files_failed: List[Dict[str, str]] = field(default_factory=list)


def should_ignore_path(rel_path: Path, exclude_patterns: Sequence[str]) -> bool:
    """Check if a path (relative to the scanned root) should be ignored."""
    if any(part in IGNORE_DIRS or part.startswith(".") for part in rel_path.parts):
        return True
    posix = rel_path.as_posix()
    return any(
        fnmatch.fnmatch(posix, pattern) or fnmatch.fnmatch(rel_path.name, pattern)
        for pattern in exclude_patterns
    )


def find_source_files(
    root: Path,
    patterns: Iterable[str],
    exclude_patterns: Sequence[str] = DEFAULT_EXCLUDE_PATTERNS,
) -> List[Path]:
    """Relative paths matching any pattern, deduplicated in pattern order."""
    seen = set()
    found: List[Path] = []
    for pattern in patterns:
        try:
            matches = sorted(root.glob(pattern))
        except (OSError, ValueError) as e:
            log.warning(f"Glob pattern {pattern} failed under {root}: {e}")
            continue
        for match in matches:
            if not match.is_file():
                continue
            rel_path = match.relative_to(root)
            if rel_path in seen or should_ignore_path(rel_path, exclude_patterns):
                continue
            seen.add(rel_path)
            found.append(rel_path)
    return found


def is_ui_class(extends: Optional[str]) -> bool:
    if not extends:
        return False
    return extends in UI_BASE_TYPES or extends.endswith("Widget")


def is_model_type(type_name: str) -> bool:
    """Capitalised, non-builtin type names are treated as other entities."""
    base = type_name.split("<", 1)[0].strip().rstrip("?")
    return bool(base) and base not in BUILTIN_TYPES and base[0].isupper()


def parse_fields(class_body: str) -> List[FieldDefinition]:
    """
    Parse instance field declarations from a class body.

    Only depth-one members are considered; static members are skipped.
    """
    fields: List[FieldDefinition] = []
    members, positions = member_text(class_body)
    for match in FIELD_PATTERN.finditer(members):
        modifiers = match.group("modifiers") or ""
        if "static" in modifiers.split():
            continue

        raw_type = " ".join(match.group("type").split())
        words = set(raw_type.replace("<", " ").replace(">", " ").split())
        if words & NON_TYPE_WORDS:
            continue

        default = match.group("default")
        if default is not None:
            # Member text has nested braces removed; read the initializer from the body
            start = positions[match.start("default") - 1] + 1
            default = class_body[start:find_statement_end(class_body, start)].strip()
            if default.startswith(">"):
                # arrow getter, not a field
                continue

        if raw_type in INFERRED_TYPE_WORDS:
            raw_type = "dynamic"

        fields.append(FieldDefinition(
            name=match.group("name"),
            type=raw_type,
            nullable=raw_type.endswith("?"),
            default_value=default,
            annotations=tuple(parse_annotations(match.group("annotations") or "")),
        ))
    return fields


def detect_relationships(fields: Iterable[FieldDefinition]) -> List[Relationship]:
    relationships: List[Relationship] = []
    for f in fields:
        type_text = f.type.rstrip("?").strip()

        generic = GENERIC_PATTERN.match(type_text)
        if generic:
            container, inner = generic.groups()
            if container in COLLECTION_TYPES and is_model_type(inner):
                relationships.append(Relationship("hasMany", inner, f.name))
            continue

        if is_model_type(type_text):
            relationships.append(Relationship("hasOne", type_text, f.name))
    return relationships


def parse_entities_from_content(
    content: str,
    source_path: str,
    include_abstract: bool = False,
    scanner: ClassScanner = default_scanner,
) -> List[EntityDefinition]:
    """Parse every entity-like class declared in one Dart file."""
    entities: List[EntityDefinition] = []
    for decl in scanner.iter_classes(content):
        if decl.is_abstract and not include_abstract:
            continue
        if is_ui_class(decl.extends):
            continue
        if not decl.balanced:
            log.warning(f"Unbalanced braces in class {decl.name} ({source_path}); using rest of file")

        fields = parse_fields(decl.body)
        annotations = tuple(decl.annotations)
        entities.append(EntityDefinition(
            name=decl.name,
            source_path=source_path,
            fields=tuple(fields),
            annotations=annotations,
            relationships=tuple(detect_relationships(fields)),
            is_immutable="freezed" in annotations or "immutable" in annotations,
            has_serialization_markers=(
                "JsonSerializable" in annotations
                or "fromJson" in decl.body
                or "toJson" in decl.body
            ),
        ))
    return entities


def discover_entities(
    root: Path,
    patterns: Optional[Sequence[str]] = None,
    exclude_patterns: Sequence[str] = DEFAULT_EXCLUDE_PATTERNS,
    include_abstract: bool = False,
) -> EntityDetectionResult:
    """Discover entity classes under root; unreadable files are skipped."""
    root = Path(root)
    result = EntityDetectionResult()

    for rel_path in find_source_files(root, patterns or DEFAULT_ENTITY_PATTERNS, exclude_patterns):
        file_path = root / rel_path
        try:
            if file_path.stat().st_size > MAX_FILE_SIZE:
                result.files_failed.append({"path": rel_path.as_posix(), "error": "file too large"})
                continue
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.warning(f"Failed to read entity file {rel_path}: {e}")
            result.files_failed.append({"path": rel_path.as_posix(), "error": str(e)})
            continue

        result.entities.extend(
            parse_entities_from_content(content, rel_path.as_posix(), include_abstract)
        )
        result.files_parsed += 1

    log.info(f"Entity scan found {len(result.entities)} entities in {result.files_parsed} files")
    return result


def extract_entities(root: Path, patterns: Optional[Sequence[str]] = None, **kwargs) -> List[EntityDefinition]:
    return discover_entities(root, patterns, **kwargs).entities
