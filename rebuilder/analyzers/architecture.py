"""
Architecture classification of a Flutter source tree.

Each archetype is a declarative ``ArchetypeRule``; a single scorer evaluates
every rule against the top-level folders of the tree. Scores are additive and
capped at 100, the highest wins and anything under ``CUSTOM_THRESHOLD`` is
reported as ``custom``.
"""
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

log = logging.getLogger(__name__)

CLEAN = "clean"
FEATURE_FIRST = "feature-first"
LAYER_FIRST = "layer-first"
CUSTOM = "custom"

CUSTOM_THRESHOLD = 40
DEFAULT_TREE_DEPTH = 3


@dataclass
class FolderNode:
    name: str
    path: str
    kind: str  # "directory" or "file"
    children: Optional[List["FolderNode"]] = None
    file_type: Optional[str] = None
    file_category: Optional[str] = None


@dataclass(frozen=True)
class ArchitectureResult:
    detected: str
    confidence: int
    structure: FolderNode
    reasoning: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Tier:
    """Awarded when at least ``min_matches`` vocabulary folders are present."""
    min_matches: int
    weight: int
    reason: str


@dataclass(frozen=True)
class ArchetypeRule:
    archetype: str
    vocabulary: Tuple[str, ...] = ()
    tiers: Tuple[Tier, ...] = ()
    # True: every satisfied tier adds up. False: only the best satisfied tier counts.
    cumulative: bool = True
    # Nested rules look inside a container folder (e.g. features/)
    container_pattern: Optional[str] = None
    container_weight: int = 0
    min_children: int = 2
    children_weight: int = 0
    child_vocabulary: Tuple[str, ...] = ()
    child_min_matches: int = 2
    structure_weight: int = 0


ARCHETYPE_RULES: Tuple[ArchetypeRule, ...] = (
    ArchetypeRule(
        archetype=CLEAN,
        vocabulary=("domain", "data", "presentation"),
        tiers=(
            Tier(2, 40, "Found clean arch folders: {found}"),
            Tier(3, 30, "All three clean architecture layers present"),
        ),
        cumulative=True,
    ),
    ArchetypeRule(
        archetype=FEATURE_FIRST,
        container_pattern=r"^(features|modules)$",
        container_weight=30,
        min_children=2,
        children_weight=20,
        child_vocabulary=("data", "domain", "presentation", "screens", "widgets"),
        child_min_matches=2,
        structure_weight=30,
    ),
    ArchetypeRule(
        archetype=LAYER_FIRST,
        vocabulary=(
            "models", "views", "controllers", "services",
            "screens", "pages", "providers", "repositories", "widgets",
        ),
        tiers=(
            Tier(3, 60, "Found layer folders: {found}"),
            Tier(2, 40, "Found some layer folders: {found}"),
        ),
        cumulative=False,
    ),
)


def list_folders(path: Path) -> List[str]:
    """Visible sub-directory names of path; unreadable directories are empty."""
    try:
        with os.scandir(path) as entries:
            return sorted(
                e.name for e in entries
                if e.is_dir() and not e.name.startswith(".")
            )
    except OSError:
        return []


def _score_flat(rule: ArchetypeRule, folders: List[str], reasoning: List[str]) -> int:
    found = [f for f in rule.vocabulary if f in folders]
    score = 0
    for tier in sorted(rule.tiers, key=lambda t: t.min_matches, reverse=not rule.cumulative):
        if len(found) >= tier.min_matches:
            score += tier.weight
            reasoning.append(tier.reason.format(found=", ".join(found)))
            if not rule.cumulative:
                break
    return score


def _score_nested(rule: ArchetypeRule, root: Path, folders: List[str], reasoning: List[str]) -> int:
    pattern = re.compile(rule.container_pattern)
    container = next((f for f in folders if pattern.match(f)), None)
    if container is None:
        return 0

    score = rule.container_weight
    reasoning.append(f"Found features folder: {container}")

    children = list_folders(root / container)
    if len(children) < rule.min_children:
        return score

    score += rule.children_weight
    reasoning.append(f"Found {len(children)} feature modules")

    structured = all(
        len([f for f in list_folders(root / container / child) if f in rule.child_vocabulary])
        >= rule.child_min_matches
        for child in children
    )
    if structured:
        score += rule.structure_weight
        reasoning.append("Feature modules have internal structure")
    return score


def score_rule(rule: ArchetypeRule, root: Path, folders: List[str], reasoning: List[str]) -> int:
    """Evaluate one archetype rule; the result is capped at 100."""
    if rule.container_pattern:
        score = _score_nested(rule, root, folders, reasoning)
    else:
        score = _score_flat(rule, folders, reasoning)
    return min(score, 100)


def categorize_file(filename: str, dir_name: str) -> str:
    directory = dir_name.lower()
    if "model" in directory or "_model" in filename or "entit" in directory:
        return "model"
    if "screen" in directory or "page" in directory:
        return "screen"
    if "widget" in directory:
        return "widget"
    if "provider" in directory or "bloc" in directory:
        return "provider"
    if "service" in directory or "repositor" in directory:
        return "service"
    if "theme" in directory:
        return "theme"
    if "route" in directory:
        return "route"
    return "unknown"


def file_type(filename: str) -> str:
    if filename.endswith(".dart"):
        return "dart"
    if filename.endswith((".yaml", ".yml")):
        return "yaml"
    if filename.endswith(".json"):
        return "json"
    return "other"


def build_folder_tree(path: Path, depth: int = DEFAULT_TREE_DEPTH) -> FolderNode:
    """Depth-bounded snapshot of the tree rooted at path."""
    node = FolderNode(name=path.name, path=str(path), kind="directory", children=[])
    if depth <= 0:
        return node

    try:
        with os.scandir(path) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError:
        return node

    for entry in entries:
        if entry.name.startswith("."):
            continue
        entry_path = Path(entry.path)
        try:
            is_dir = entry.is_dir()
        except OSError:
            continue
        if is_dir:
            node.children.append(build_folder_tree(entry_path, depth - 1))
        else:
            node.children.append(FolderNode(
                name=entry.name,
                path=str(entry_path),
                kind="file",
                file_type=file_type(entry.name),
                file_category=categorize_file(entry.name, path.name),
            ))
    return node


def detect_architecture(
    root: Path,
    depth: int = DEFAULT_TREE_DEPTH,
    rules: Tuple[ArchetypeRule, ...] = ARCHETYPE_RULES,
) -> ArchitectureResult:
    """
    Classify the tree rooted at root against the known archetypes.

    Ties keep the order of ``rules`` (clean, feature-first, layer-first).
    """
    root = Path(root)
    structure = build_folder_tree(root, depth)
    folders = list_folders(root)
    reasoning: List[str] = []

    scores = [(rule.archetype, score_rule(rule, root, folders, reasoning)) for rule in rules]
    winner, best = max(scores, key=lambda s: s[1])
    log.info(f"Architecture scores for {root}: {dict(scores)}")

    if best < CUSTOM_THRESHOLD:
        reasoning.append("No clear architecture pattern detected")
        return ArchitectureResult(
            detected=CUSTOM,
            confidence=100 - best,
            structure=structure,
            reasoning=tuple(reasoning),
        )

    return ArchitectureResult(
        detected=winner,
        confidence=best,
        structure=structure,
        reasoning=tuple(reasoning),
    )
