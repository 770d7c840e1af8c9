"""
Structural scanning of Dart sources without a full grammar.

Class declarations are located with a regex; their bodies are sliced with an
explicit brace-depth state machine that ignores braces inside string
literals and comments. Callers depend only on ``ClassScanner`` so a real
parser can replace it later.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

CLASS_PATTERN = re.compile(
    r"^(?P<annotations>(?:@\w+(?:\([^)]*\))?\s*)*)"
    r"(?P<modifiers>(?:(?:abstract|sealed|base|final|interface)\s+)*)"
    r"class\s+(?P<name>\w+)(?:\s*<[^{]*?>)?"
    r"(?:\s+extends\s+(?P<extends>\w+)(?:<[^{]*?>)?)?"
    r"(?:\s+with\s+(?P<mixins>[\w$<>,\s]+?))?"
    r"(?:\s+implements\s+(?P<implements>[\w$<>,\s]+?))?"
    r"\s*\{",
    re.MULTILINE,
)

ANNOTATION_PATTERN = re.compile(r"@(\w+)(?:\(([^)]*)\))?")


class _State(Enum):
    CODE = "code"
    SINGLE_QUOTE = "single_quote"
    DOUBLE_QUOTE = "double_quote"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"


@dataclass
class ClassDeclaration:
    name: str
    extends: Optional[str]
    mixins: List[str] = field(default_factory=list)
    implements: List[str] = field(default_factory=list)
    annotations: List[str] = field(default_factory=list)
    is_abstract: bool = False
    start: int = 0
    header: str = ""
    body: str = ""
    balanced: bool = True


def parse_annotations(text: str) -> List[str]:
    """Return annotation names (without '@') in order of appearance."""
    return [m.group(1) for m in ANNOTATION_PATTERN.finditer(text)]


def _split_names(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def find_block_end(content: str, start: int) -> Optional[int]:
    """
    Index just past the brace closing the first '{' at or after start.

    Returns None when the braces never balance.
    """
    state = _State.CODE
    depth = 0
    started = False
    i = start
    length = len(content)

    while i < length:
        ch = content[i]
        nxt = content[i + 1] if i + 1 < length else ""

        if state is _State.CODE:
            if ch == "/" and nxt == "/":
                state = _State.LINE_COMMENT
                i += 1
            elif ch == "/" and nxt == "*":
                state = _State.BLOCK_COMMENT
                i += 1
            elif ch == "'":
                state = _State.SINGLE_QUOTE
            elif ch == '"':
                state = _State.DOUBLE_QUOTE
            elif ch == "{":
                depth += 1
                started = True
            elif ch == "}":
                depth -= 1
                if started and depth == 0:
                    return i + 1
        elif state is _State.SINGLE_QUOTE or state is _State.DOUBLE_QUOTE:
            quote = "'" if state is _State.SINGLE_QUOTE else '"'
            if ch == "\\":
                i += 1
            elif ch == quote or ch == "\n":
                state = _State.CODE
        elif state is _State.LINE_COMMENT:
            if ch == "\n":
                state = _State.CODE
        elif state is _State.BLOCK_COMMENT:
            if ch == "*" and nxt == "/":
                state = _State.CODE
                i += 1
        i += 1

    return None


def member_text(body: str) -> Tuple[str, List[int]]:
    """
    Text of a class body at nesting depth one, with the body offset of each kept character.

    Method bodies, constructor parameter blocks and other nested braces are
    dropped so that only member declarations remain. Comments are removed.
    """
    open_index = body.find("{")
    if open_index == -1:
        return "", []

    kept: List[str] = []
    positions: List[int] = []
    depth = 0
    state = _State.CODE
    i = open_index
    length = len(body)

    while i < length:
        ch = body[i]
        nxt = body[i + 1] if i + 1 < length else ""

        if state is _State.CODE:
            if ch == "/" and nxt == "/":
                state = _State.LINE_COMMENT
                i += 2
                continue
            if ch == "/" and nxt == "*":
                state = _State.BLOCK_COMMENT
                i += 2
                continue
            if ch == "{":
                depth += 1
                i += 1
                continue
            if ch == "}":
                depth -= 1
                if depth == 0:
                    break
                i += 1
                continue
            if ch == "'":
                state = _State.SINGLE_QUOTE
            elif ch == '"':
                state = _State.DOUBLE_QUOTE
        elif state is _State.SINGLE_QUOTE or state is _State.DOUBLE_QUOTE:
            quote = "'" if state is _State.SINGLE_QUOTE else '"'
            if ch == "\\":
                if depth == 1:
                    for j in range(i, min(i + 2, length)):
                        kept.append(body[j])
                        positions.append(j)
                i += 2
                continue
            if ch == quote or ch == "\n":
                state = _State.CODE
        elif state is _State.LINE_COMMENT:
            if ch != "\n":
                i += 1
                continue
            state = _State.CODE
        elif state is _State.BLOCK_COMMENT:
            if ch == "*" and nxt == "/":
                state = _State.CODE
                i += 2
            else:
                i += 1
            continue

        if depth == 1:
            kept.append(ch)
            positions.append(i)
        i += 1

    return "".join(kept), positions


def top_level_members(body: str) -> str:
    return member_text(body)[0]


def find_statement_end(content: str, start: int) -> int:
    """
    Index of the ';' ending the statement that starts at start.

    Semicolons nested in brackets, strings or comments do not count; the end
    of content is returned when no terminator is found.
    """
    state = _State.CODE
    depth = 0
    i = start
    length = len(content)

    while i < length:
        ch = content[i]
        nxt = content[i + 1] if i + 1 < length else ""

        if state is _State.CODE:
            if ch == "/" and nxt == "/":
                state = _State.LINE_COMMENT
                i += 1
            elif ch == "/" and nxt == "*":
                state = _State.BLOCK_COMMENT
                i += 1
            elif ch == "'":
                state = _State.SINGLE_QUOTE
            elif ch == '"':
                state = _State.DOUBLE_QUOTE
            elif ch in "({[":
                depth += 1
            elif ch in ")}]":
                if depth == 0:
                    return i
                depth -= 1
            elif ch == ";" and depth == 0:
                return i
        elif state is _State.SINGLE_QUOTE or state is _State.DOUBLE_QUOTE:
            quote = "'" if state is _State.SINGLE_QUOTE else '"'
            if ch == "\\":
                i += 1
            elif ch == quote or ch == "\n":
                state = _State.CODE
        elif state is _State.LINE_COMMENT:
            if ch == "\n":
                state = _State.CODE
        elif state is _State.BLOCK_COMMENT:
            if ch == "*" and nxt == "/":
                state = _State.CODE
                i += 1
        i += 1

    return length


class ClassScanner:
    """Finds class declarations and slices their balanced bodies."""

    def iter_classes(self, content: str) -> Iterator[ClassDeclaration]:
        for match in CLASS_PATTERN.finditer(content):
            start = match.start()
            body_start = match.end() - 1
            end = find_block_end(content, body_start)
            balanced = end is not None
            if end is None:
                # Unbalanced braces: keep everything up to end-of-file
                end = len(content)

            yield ClassDeclaration(
                name=match.group("name"),
                extends=match.group("extends"),
                mixins=_split_names(match.group("mixins")),
                implements=_split_names(match.group("implements")),
                annotations=parse_annotations(match.group("annotations") or ""),
                is_abstract="abstract" in (match.group("modifiers") or ""),
                start=start,
                header=match.group(0),
                body=content[body_start:end],
                balanced=balanced,
            )


default_scanner = ClassScanner()
