"""Page description: a technology-neutral tree for one printable page.

All geometry is in millimetres on a 210 x 297 mm sheet, origin top-left.
Font sizes are in points. Leaf nodes inside a Section stack vertically from the
section's top edge; nested Sections carry their own absolute position.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

from fatura.styles.tokens import Colors


PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
MM_PER_PT = 25.4 / 72.0
LEADING = 1.4
ASCENT = 0.78  # baseline depth as a fraction of the font size

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


@dataclass(frozen=True)
class TextStyle:
    size: float = 10.0
    bold: bool = False
    color: str = Colors.ink
    align: str = "left"  # left | right | center | justify (label left, value right)
    background: Optional[str] = None
    border: Optional[str] = None

    @property
    def font(self) -> str:
        return FONT_BOLD if self.bold else FONT_REGULAR

    @property
    def leading_mm(self) -> float:
        return self.size * LEADING * MM_PER_PT

    def baseline(self, top: float, line: int = 0) -> float:
        """Baseline (mm from the page top) of the given line in a box starting at top."""
        return top + line * self.leading_mm + (self.leading_mm - self.size * MM_PER_PT) / 2 + self.size * ASCENT * MM_PER_PT


@dataclass(frozen=True)
class Text:
    key: str
    lines: Tuple[str, ...]
    style: TextStyle = TextStyle()
    space_after: float = 0.0

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def height(self) -> float:
        return len(self.lines) * self.style.leading_mm + self.space_after


@dataclass(frozen=True)
class Field:
    """A label/value pair on one line.

    Drawn as "label: value" for left alignment, label and value both flush right
    for right alignment, and label left / value right for justify.
    """

    key: str
    label: str
    value: str
    style: TextStyle = TextStyle()
    label_style: Optional[TextStyle] = None
    space_after: float = 0.0

    @property
    def text(self) -> str:
        return f"{self.label}: {self.value}"

    @property
    def height(self) -> float:
        return self.style.leading_mm + self.space_after


@dataclass(frozen=True)
class Image:
    key: str
    source: str  # embeddable image string (data URL)
    width: float
    height_mm: float
    space_after: float = 0.0

    @property
    def height(self) -> float:
        return self.height_mm + self.space_after


@dataclass(frozen=True)
class Rule:
    key: str
    color: str = Colors.ink_faint
    thickness: float = 0.5  # points
    dashed: bool = False
    space_after: float = 0.0

    @property
    def height(self) -> float:
        return self.thickness * MM_PER_PT + self.space_after


@dataclass(frozen=True)
class Spacer:
    height: float
    key: str = ""


@dataclass(frozen=True)
class Column:
    title: str
    width: float
    align: str = "left"


@dataclass(frozen=True)
class TableRow:
    key: str
    cells: Tuple[Tuple[str, ...], ...]  # wrapped lines per column
    height: float


@dataclass(frozen=True)
class Table:
    key: str
    columns: Tuple[Column, ...]
    rows: Tuple[TableRow, ...]
    header_height: float
    header_background: str
    header_style: TextStyle
    body_style: TextStyle
    padding_x: float
    padding_y: float
    row_rule: str = Colors.row_rule

    @property
    def height(self) -> float:
        return self.header_height + sum(r.height for r in self.rows)

    @property
    def width(self) -> float:
        return sum(c.width for c in self.columns)


Leaf = Union[Text, Field, Image, Rule, Spacer, Table]


@dataclass(frozen=True)
class Section:
    key: str
    x: float
    y: float
    width: float
    height: float
    children: Tuple[Union["Section", Leaf], ...] = ()


Node = Union[Section, Leaf]


@dataclass(frozen=True)
class PageDescription:
    width: float
    height: float  # natural height; at least one A4 sheet
    margin: float
    theme: str
    sections: Tuple[Section, ...] = field(default_factory=tuple)

    @property
    def print_scale(self) -> float:
        """Uniform shrink needed for the page to fit one A4 sheet (1.0 when it already fits)."""
        if self.height <= PAGE_HEIGHT_MM:
            return 1.0
        return PAGE_HEIGHT_MM / self.height

    def walk(self) -> Iterator[Node]:
        stack: List[Node] = list(reversed(self.sections))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Section):
                stack.extend(reversed(node.children))

    def find(self, key: str) -> Optional[Node]:
        for node in self.walk():
            if getattr(node, "key", None) == key:
                return node
        return None

    def keys(self) -> List[str]:
        return [n.key for n in self.walk() if getattr(n, "key", "")]

    def texts(self) -> List[str]:
        """Every rendered string in drawing order (handy for search and tests)."""
        out: List[str] = []
        for node in self.walk():
            if isinstance(node, (Text, Field)):
                out.append(node.text)
            elif isinstance(node, Table):
                out.extend(c.title for c in node.columns)
                for row in node.rows:
                    out.extend("\n".join(cell) for cell in row.cells)
        return out

    def placed(self) -> Iterator[Tuple[Leaf, float, float, float]]:
        """Yield (leaf, x, y, width) with absolute top-left positions, in drawing order."""
        for section in self.sections:
            yield from _place(section)


def _place(section: Section) -> Iterator[Tuple[Leaf, float, float, float]]:
    y = section.y
    for child in section.children:
        if isinstance(child, Section):
            yield from _place(child)
            continue
        yield child, section.x, y, section.width
        y += child.height
