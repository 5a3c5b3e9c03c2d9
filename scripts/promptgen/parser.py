"""YAML-subset parser for persona files.

Reads the small, line-oriented dialect used by persona files into a
``PromptSpec``. Supported constructs:

- ``key: value`` scalars (optionally quoted)
- ``key: |`` literal blocks for the long text fields
- ``facts:`` / ``stop:`` sections holding ``- item`` lists
- a ``few_shots:`` section holding ``- user: ...`` / ``assistant: ...`` items
- ``#`` comments

This is not a YAML implementation. Anything the dialect does not cover is
skipped with a warning; parsing itself never fails.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from .schema import FewShotExample, PromptSpec
from .utils.logging import logger

__all__ = [
    "ParserState",
    "Section",
    "YamlSubsetParser",
    "leading_spaces",
    "load_prompt_yaml",
    "parse_prompt_yaml",
    "strip_quotes",
]


_TAB_WIDTH = 2
_TEXT_KEYS = frozenset({"persona", "style", "constraints", "output_format"})
_TRUE_VALUES = frozenset({"true", "1", "yes"})
_BOOL_VALUES = _TRUE_VALUES | {"false", "0", "no"}


class ParserState(Enum):
    """Where the driver loop sends the next line."""

    NORMAL = "normal"
    IN_BLOCK = "in_block"


class Section(Enum):
    """Named list section the parser is currently inside."""

    NONE = "none"
    FACTS = "facts"
    STOP = "stop"
    FEW_SHOTS = "few_shots"


_SECTIONS = {section.value: section for section in Section if section is not Section.NONE}


def leading_spaces(line: str) -> int:
    """Indent width of a line. Tabs count as two spaces."""
    width = 0
    for ch in line:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += _TAB_WIDTH
        else:
            break
    return width


def strip_quotes(value: str) -> str:
    """Trim and remove one matching pair of quotes around the whole value."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _dedent(line: str, width: int) -> str:
    """Remove up to ``width`` columns of leading whitespace."""
    consumed = 0
    i = 0
    while i < len(line) and consumed < width and line[i] in " \t":
        consumed += _TAB_WIDTH if line[i] == "\t" else 1
        i += 1
    return line[i:]


def _split_key_value(text: str) -> tuple[str, str] | None:
    """Split ``key: value`` on the first colon, or None without a key."""
    key, sep, value = text.partition(":")
    key = key.strip()
    if not sep or not key:
        return None
    return key, value.strip()


class YamlSubsetParser:
    """Line-driven state machine that fills a ``PromptSpec``.

    Every call to :meth:`parse` starts from a fresh ``PromptSpec``, so
    results never accumulate across calls. One instance must not be used
    from several threads at once.
    """

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.spec = PromptSpec()
        self.state = ParserState.NORMAL
        self.section = Section.NONE
        self._line_no = 0
        self._block_key = ""
        self._block_opener_indent = 0
        self._block_indent: int | None = None
        self._block_lines: list[str] = []
        self._block_few_shot = False
        self._pending: FewShotExample | None = None

    def parse(self, text: str) -> PromptSpec:
        """Parse ``text`` and return the populated spec."""
        self._reset()
        lines = text.lstrip("\ufeff").splitlines()

        index = 0
        while index < len(lines):
            self._line_no = index + 1
            if self.state is ParserState.IN_BLOCK:
                consumed = self._feed_block(lines[index])
            else:
                consumed = self._feed_line(lines[index])
            # A line that closes a block is handed back to the normal rules.
            if consumed:
                index += 1

        self._finish()
        return self.spec

    # -- block scalars -----------------------------------------------------

    def _open_block(self, key: str, indent: int, few_shot: bool = False) -> None:
        self.state = ParserState.IN_BLOCK
        self._block_key = key.lower()
        self._block_opener_indent = indent
        self._block_indent = None
        self._block_lines = []
        self._block_few_shot = few_shot

    def _feed_block(self, line: str) -> bool:
        stripped = line.strip()
        indent = leading_spaces(line)

        if self._block_indent is None:
            # Leading blank lines never set the base indent.
            if not stripped:
                return True
            if indent <= self._block_opener_indent:
                if stripped.startswith("#"):
                    return True
                self._close_block()
                return False
            self._block_indent = indent
        elif stripped and not stripped.startswith("#") and indent < self._block_indent:
            self._close_block()
            return False

        self._block_lines.append(_dedent(line, self._block_indent) if stripped else "")
        return True

    def _close_block(self) -> None:
        text = "\n".join(self._block_lines).strip()
        if self._block_few_shot:
            # Opened from a few_shots line, so the target is the pending example.
            setattr(self._pending, self._block_key, text)
        elif self._block_key in _TEXT_KEYS:
            setattr(self.spec, self._block_key, text)
        else:
            logger.debug(f"Discarding block for unsupported key '{self._block_key}'")

        self.state = ParserState.NORMAL
        self._block_key = ""
        self._block_indent = None
        self._block_lines = []
        self._block_few_shot = False

    # -- normal lines ------------------------------------------------------

    def _feed_line(self, line: str) -> bool:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return True

        indent = leading_spaces(line)
        is_item = stripped.startswith("-")
        top_level = indent == 0 and not is_item

        pair = _split_key_value(stripped)
        # "- key: |" is a list item. Indented few_shots fields open their own blocks.
        opens_block = top_level or (not is_item and self.section is not Section.FEW_SHOTS)
        if pair and pair[1] == "|" and opens_block:
            if top_level:
                self._end_section()
            self._open_block(pair[0], indent)
            return True

        if top_level and stripped.endswith(":"):
            self._enter_section(stripped[:-1].strip())
            return True

        if top_level and pair:
            self._end_section()
            self._assign_scalar(*pair)
            return True

        if self.section in (Section.FACTS, Section.STOP):
            self._feed_list_item(stripped)
        elif self.section is Section.FEW_SHOTS:
            self._feed_few_shot(stripped, indent)
        elif indent:
            logger.debug(f"Skipping line {self._line_no} outside a known section")
        else:
            logger.warning(f"Ignoring unrecognized line {self._line_no}: {stripped!r}")
        return True

    def _enter_section(self, name: str) -> None:
        self._flush_few_shot()
        self.section = _SECTIONS.get(name.lower(), Section.NONE)
        if self.section is Section.NONE:
            logger.warning(f"Unknown section '{name}' on line {self._line_no}; its entries are ignored")

    def _end_section(self) -> None:
        self._flush_few_shot()
        self.section = Section.NONE

    def _assign_scalar(self, key: str, raw: str) -> None:
        name = key.lower()
        value = strip_quotes(raw)
        if name in _TEXT_KEYS:
            setattr(self.spec, name, value)
        elif name == "tts_friendly":
            self.spec.tts_friendly = self._parse_bool(value)
        else:
            logger.warning(f"Ignoring unknown key '{key}' on line {self._line_no}")

    def _parse_bool(self, value: str) -> bool:
        lowered = value.lower()
        if lowered not in _BOOL_VALUES:
            logger.warning(f"Unrecognized boolean {value!r} on line {self._line_no}; treating as false")
        return lowered in _TRUE_VALUES

    # -- sections ----------------------------------------------------------

    def _feed_list_item(self, stripped: str) -> None:
        if not stripped.startswith("-"):
            logger.debug(f"Skipping non-item line {self._line_no} in '{self.section.value}'")
            return

        item = strip_quotes(stripped[1:])
        if not item:
            logger.debug(f"Skipping empty item on line {self._line_no}")
            return

        target = self.spec.facts if self.section is Section.FACTS else self.spec.stop
        target.append(item)

    def _feed_few_shot(self, stripped: str, indent: int) -> None:
        if stripped.startswith("-"):
            self._flush_few_shot()
            self._pending = FewShotExample()
            rest = stripped[1:].strip()
            if rest:
                self._fill_few_shot(rest, indent)
            return

        if self._pending is None:
            logger.warning(f"Ignoring few_shots line {self._line_no} outside of a '-' item")
            return
        self._fill_few_shot(stripped, indent)

    def _fill_few_shot(self, text: str, indent: int) -> None:
        pair = _split_key_value(text)
        if pair is None:
            logger.warning(f"Ignoring malformed few_shots line {self._line_no}: {text!r}")
            return

        key, raw = pair
        name = key.lower()
        if name in ("user", "assistant") and raw == "|":
            self._open_block(name, indent, few_shot=True)
        elif name in ("user", "assistant"):
            setattr(self._pending, name, strip_quotes(raw))
        else:
            logger.warning(f"Ignoring unknown few_shots key '{key}' on line {self._line_no}")

    def _flush_few_shot(self) -> None:
        if self._pending is not None and not self._pending.is_empty():
            self.spec.few_shots.append(self._pending)
        self._pending = None

    def _finish(self) -> None:
        if self.state is ParserState.IN_BLOCK:
            self._close_block()
        self._flush_few_shot()


def parse_prompt_yaml(text: str) -> PromptSpec:
    """Parse persona text into a ``PromptSpec``."""
    return YamlSubsetParser().parse(text)


def load_prompt_yaml(path: str | Path) -> tuple[PromptSpec, bool]:
    """Read and parse a persona file.

    Returns:
        ``(spec, True)`` on success, ``(PromptSpec(), False)`` when the file
        cannot be read.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read persona file {path}: {e}")
        return PromptSpec(), False

    logger.debug(f"Loaded persona file {path}")
    return parse_prompt_yaml(text), True
