"""Theme detection: theme files, design language, primary colour, fonts and named colours."""
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from rebuilder.analyzers.entities import DEFAULT_EXCLUDE_PATTERNS, find_source_files

log = logging.getLogger(__name__)

DEFAULT_THEME_PATTERNS = (
    "**/theme/**/*.dart",
    "**/themes/**/*.dart",
    "**/core/theme*.dart",
    "**/app_theme.dart",
    "**/theme.dart",
)

HEX = r"(?:const\s+)?Color\s*\(\s*0x([0-9A-Fa-f]{6,8})\s*\)"

PRIMARY_COLOR_PATTERN = re.compile(r"\b(?:primaryColor|seedColor|colorSchemeSeed|primary)\s*:\s*" + HEX)
NAMED_COLOR_PATTERN = re.compile(r"static\s+(?:const\s+|final\s+)?Color\s+(\w+)\s*=\s*" + HEX)
FONT_FAMILY_PATTERN = re.compile(r"fontFamily\s*:\s*['\"]([^'\"]+)['\"]")
MATERIAL_PATTERN = re.compile(r"\b(?:MaterialApp|ThemeData)\b")
CUPERTINO_PATTERN = re.compile(r"\b(?:CupertinoApp|CupertinoThemeData)\b")

PRIMARY_COLOR_NAMES = {"primary", "primarycolor", "brand", "brandcolor"}


@dataclass
class ThemeInfo:
    use_material: bool = False
    use_cupertino: bool = False
    primary_color: Optional[str] = None
    font_family: Optional[str] = None
    colors: Dict[str, str] = field(default_factory=dict)
    # Relative to the scanned root
    theme_files: List[str] = field(default_factory=list)

    @property
    def has_custom_theme(self) -> bool:
        return bool(self.theme_files)

    def to_dict(self) -> Dict[str, object]:
        return {
            "useMaterial": self.use_material,
            "useCupertino": self.use_cupertino,
            "primaryColor": self.primary_color,
            "fontFamily": self.font_family,
            "colors": self.colors,
            "hasCustomTheme": self.has_custom_theme,
            "themeFiles": self.theme_files,
        }


def to_css_hex(value: str) -> str:
    """0xAARRGGBB or RRGGBB digits as #RRGGBB."""
    return "#" + value[-6:].upper()


def analyze_theme_content(content: str, theme: ThemeInfo) -> None:
    """Fold the theme signals found in one source file into theme; later files win."""
    if MATERIAL_PATTERN.search(content):
        theme.use_material = True
    if CUPERTINO_PATTERN.search(content):
        theme.use_cupertino = True

    for name, value in NAMED_COLOR_PATTERN.findall(content):
        theme.colors[name] = to_css_hex(value)

    match = PRIMARY_COLOR_PATTERN.search(content)
    if match:
        theme.primary_color = to_css_hex(match.group(1))
    elif theme.primary_color is None:
        named = next((v for k, v in theme.colors.items() if k.lower() in PRIMARY_COLOR_NAMES), None)
        if named:
            theme.primary_color = named

    font = FONT_FAMILY_PATTERN.search(content)
    if font:
        theme.font_family = font.group(1)


def extract_theme(root: Path, patterns: Optional[Sequence[str]] = None) -> ThemeInfo:
    """
    Scan root for theme definitions.

    The entry point (main.dart) is read first for inline ThemeData; dedicated
    theme files are then analyzed in pattern order and recorded.
    """
    root = Path(root)
    theme = ThemeInfo()

    main_path = root / "main.dart"
    if main_path.is_file():
        try:
            analyze_theme_content(main_path.read_text(encoding="utf-8"), theme)
        except (OSError, UnicodeDecodeError) as e:
            log.warning(f"Skipping unreadable file {main_path}: {e}")

    for rel_path in find_source_files(root, patterns or DEFAULT_THEME_PATTERNS, DEFAULT_EXCLUDE_PATTERNS):
        try:
            content = (root / rel_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.warning(f"Skipping unreadable file {rel_path}: {e}")
            continue
        analyze_theme_content(content, theme)
        theme.theme_files.append(rel_path.as_posix())

    if theme.theme_files:
        log.info(f"Found {len(theme.theme_files)} theme file(s), primary colour {theme.primary_color or 'not set'}")
    return theme
