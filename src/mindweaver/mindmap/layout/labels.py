# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Label text wrapping inside circular nodes.

"""
Greedy word wrapping for node labels.

Renderers that can measure text (a canvas, a font library) pass their own
`measure(text, font_size)` callable; otherwise widths are estimated from
character classes of a typical sans-serif face at weight 600.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

MeasureFn = Callable[[str, float], float]

# Approximate advance widths as a fraction of font size
_NARROW = set("il.,:;'|!Ijtf()[] ")
_WIDE = set("mwMW@%")
_CAPS_WIDTH = 0.68
_DEFAULT_WIDTH = 0.56


def approximate_text_width(text: str, font_size: float) -> float:
    width = 0.0
    for ch in text:
        if ch in _NARROW:
            width += 0.3
        elif ch in _WIDE:
            width += 0.9
        elif ch.isupper():
            width += _CAPS_WIDTH
        else:
            width += _DEFAULT_WIDTH
    return width * font_size


@dataclass(frozen=True)
class WrappedLabel:
    lines: List[str]
    font_size: float
    line_height: float
    max_width: float

    @property
    def total_height(self) -> float:
        return len(self.lines) * self.line_height

    @property
    def offset_y(self) -> float:
        """Vertical shift of the first line that centers the block on the node."""
        return -self.total_height / 2 + self.line_height / 2

    def line_offsets(self) -> List[float]:
        return [self.offset_y + i * self.line_height for i in range(len(self.lines))]


def wrap_label(
    title: str,
    radius: float,
    font_size: float = 11.0,
    measure: Optional[MeasureFn] = None,
    width_factor: float = 1.6,
) -> WrappedLabel:
    """
    Wrap a title into lines no wider than width_factor * radius.

    Words are packed greedily; the word that overflows a line starts the
    next one. A single word wider than the budget keeps a line to itself.
    """
    measure = measure or approximate_text_width
    max_width = radius * width_factor

    lines: List[str] = []
    line: List[str] = []
    for word in title.split():
        line.append(word)
        if len(line) > 1 and measure(' '.join(line), font_size) > max_width:
            line.pop()
            lines.append(' '.join(line))
            line = [word]
    if line or not lines:
        lines.append(' '.join(line))

    return WrappedLabel(
        lines=lines,
        font_size=font_size,
        line_height=font_size + 2,
        max_width=max_width,
    )
