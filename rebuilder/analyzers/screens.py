"""Screen and widget extraction from Dart sources."""
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from rebuilder.analyzers.class_scanner import find_block_end
from rebuilder.analyzers.entities import (
    DEFAULT_EXCLUDE_PATTERNS,
    FieldDefinition,
    find_source_files,
)

log = logging.getLogger(__name__)

DEFAULT_SCREEN_PATTERNS = (
    "**/screens/**/*.dart",
    "**/pages/**/*.dart",
    "**/views/**/*.dart",
    "**/presentation/**/*.dart",
    "**/*_screen.dart",
    "**/*_page.dart",
)

DEFAULT_WIDGET_PATTERNS = (
    "**/widgets/**/*.dart",
    "**/components/**/*.dart",
    "**/shared/**/*.dart",
    "**/common/**/*.dart",
)

UI_CLASS_PATTERN = re.compile(
    r"class\s+(\w+)\s+extends\s+"
    r"(StatefulWidget|StatelessWidget|HookWidget|ConsumerWidget|ConsumerStatefulWidget|HookConsumerWidget)\b"
)

SCAFFOLD_PATTERN = re.compile(r"Scaffold\s*\(")
APPBAR_PATTERN = re.compile(r"appBar\s*:\s*AppBar")
BOTTOM_NAV_PATTERN = re.compile(r"bottomNavigationBar\s*:")
DRAWER_PATTERN = re.compile(r"drawer\s*:\s*Drawer")
FAB_PATTERN = re.compile(r"floatingActionButton\s*:")

PROVIDER_PATTERNS = (
    re.compile(r"ref\.watch\((\w+)"),
    re.compile(r"ref\.read\((\w+)"),
    re.compile(r"BlocProvider\.of<(\w+)>"),
    re.compile(r"context\.read<(\w+)>"),
    re.compile(r"context\.watch<(\w+)>"),
)

WIDGET_REFERENCE_PATTERN = re.compile(
    r"\b([A-Z][a-zA-Z0-9]+(?:Widget|Button|Card|Tile|Item|View|List|Form))\s*\("
)

# Checked in order; the first hit wins
LAYOUT_PATTERNS = (
    ("grid", re.compile(r"GridView")),
    ("list", re.compile(r"ListView")),
    ("stack", re.compile(r"Stack\s*\(")),
    ("row", re.compile(r"Row\s*\(")),
    ("column", re.compile(r"Column\s*\(")),
)


@dataclass(frozen=True)
class ScaffoldInfo:
    has_app_bar: bool = False
    has_bottom_nav: bool = False
    has_drawer: bool = False
    has_fab: bool = False


@dataclass
class ScreenDefinition:
    name: str
    source_path: str
    kind: str  # stateful | stateless | hook
    route: Optional[str]
    scaffold: ScaffoldInfo
    providers: List[str] = field(default_factory=list)
    widgets: List[str] = field(default_factory=list)
    layout: str = "custom"


@dataclass
class WidgetDefinition:
    name: str
    source_path: str
    kind: str
    props: List[FieldDefinition] = field(default_factory=list)
    is_reusable: bool = False


def widget_kind(extends_type: str) -> str:
    if "Stateful" in extends_type:
        return "stateful"
    if "Hook" in extends_type:
        return "hook"
    return "stateless"


def class_body(content: str, start: int) -> str:
    end = find_block_end(content, start)
    return content[start:end if end is not None else len(content)]


def ui_body(content: str, start: int, class_name: str, extends_type: str) -> str:
    """Body of a UI class; stateful widgets also include their State class."""
    body = class_body(content, start)
    if "Stateful" not in extends_type:
        return body
    state = re.search(
        r"class\s+\w+\s+extends\s+(?:State|ConsumerState)<" + re.escape(class_name) + r">",
        content,
    )
    if state:
        body += class_body(content, state.start())
    return body


def extract_providers(body: str) -> List[str]:
    providers: List[str] = []
    for pattern in PROVIDER_PATTERNS:
        for match in pattern.finditer(body):
            if match.group(1) not in providers:
                providers.append(match.group(1))
    return providers


def extract_widget_references(body: str) -> List[str]:
    widgets: List[str] = []
    for match in WIDGET_REFERENCE_PATTERN.finditer(body):
        if match.group(1) not in widgets:
            widgets.append(match.group(1))
    return widgets


def detect_layout(body: str) -> str:
    for layout, pattern in LAYOUT_PATTERNS:
        if pattern.search(body):
            return layout
    return "custom"


def extract_route(content: str, class_name: str) -> str:
    """Route from a route annotation or map literal, else derived from the class name."""
    route_patterns = (
        re.compile(r"@(?:GoRoute|Route)\s*\([^)]*path\s*:\s*['\"]([^'\"]+)['\"]"),
        re.compile(re.escape(class_name) + r"[^{]*=\s*['\"]([^'\"]+)['\"]"),
        re.compile(r"['\"]([/\w-]+)['\"]\s*:\s*" + re.escape(class_name)),
    )
    for pattern in route_patterns:
        match = pattern.search(content)
        if match:
            return match.group(1)

    stem = re.sub(r"(Screen|Page)$", "", class_name, flags=re.IGNORECASE)
    return "/" + re.sub(r"(?<!^)([A-Z])", r"-\1", stem).lower()


def parse_screens_from_content(content: str, source_path: str) -> List[ScreenDefinition]:
    screens: List[ScreenDefinition] = []
    for match in UI_CLASS_PATTERN.finditer(content):
        class_name, extends_type = match.groups()
        body = ui_body(content, match.start(), class_name, extends_type)

        # Only include if has Scaffold (actual screen, not just widget)
        if not SCAFFOLD_PATTERN.search(body):
            continue

        screens.append(ScreenDefinition(
            name=class_name,
            source_path=source_path,
            kind=widget_kind(extends_type),
            route=extract_route(content, class_name),
            scaffold=ScaffoldInfo(
                has_app_bar=bool(APPBAR_PATTERN.search(body)),
                has_bottom_nav=bool(BOTTOM_NAV_PATTERN.search(body)),
                has_drawer=bool(DRAWER_PATTERN.search(body)),
                has_fab=bool(FAB_PATTERN.search(body)),
            ),
            providers=extract_providers(body),
            widgets=extract_widget_references(body),
            layout=detect_layout(body),
        ))
    return screens


def extract_props(body: str, class_name: str) -> List[FieldDefinition]:
    """Named constructor parameters of a widget, typed from their field declarations."""
    constructor = re.search(
        r"(?:const\s+)?" + re.escape(class_name) + r"\s*\(\s*\{([^}]*)\}",
        body,
    )
    if not constructor:
        return []

    props: List[FieldDefinition] = []
    for param in (p.strip() for p in constructor.group(1).split(",")):
        if not param:
            continue
        name_match = re.search(r"(?:required\s+)?(?:this\.|super\.)?(\w+)\s*(?:=.*)?$", param)
        if not name_match:
            continue
        name = name_match.group(1)
        if name in ("key", "super"):
            continue

        field_match = re.search(r"final\s+([\w<>,?\s]+?)\s+" + re.escape(name) + r"\s*;", body)
        type_text = field_match.group(1).strip() if field_match else "dynamic"
        props.append(FieldDefinition(
            name=name,
            type=type_text,
            nullable=type_text.endswith("?") or "required" not in param,
        ))
    return props


def parse_widgets_from_content(content: str, source_path: str) -> List[WidgetDefinition]:
    widgets: List[WidgetDefinition] = []
    for match in UI_CLASS_PATTERN.finditer(content):
        class_name, extends_type = match.groups()
        body = ui_body(content, match.start(), class_name, extends_type)

        # Screens are reported separately
        if SCAFFOLD_PATTERN.search(body):
            continue

        props = extract_props(body, class_name)
        widgets.append(WidgetDefinition(
            name=class_name,
            source_path=source_path,
            kind=widget_kind(extends_type),
            props=props,
            is_reusable=len(props) > 0,
        ))
    return widgets


def _scan(root: Path, patterns: Sequence[str], parse) -> list:
    results = []
    for rel_path in find_source_files(root, patterns, DEFAULT_EXCLUDE_PATTERNS):
        try:
            content = (root / rel_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.warning(f"Skipping unreadable file {rel_path}: {e}")
            continue
        results.extend(parse(content, rel_path.as_posix()))
    return results


def extract_screens(root: Path, patterns: Optional[Sequence[str]] = None) -> List[ScreenDefinition]:
    return _scan(Path(root), patterns or DEFAULT_SCREEN_PATTERNS, parse_screens_from_content)


def extract_widgets(root: Path, patterns: Optional[Sequence[str]] = None) -> List[WidgetDefinition]:
    return _scan(Path(root), patterns or DEFAULT_WIDGET_PATTERNS, parse_widgets_from_content)
