"""
Document sources for editing sessions.

Two document shapes share one interface:

* ``PlainDocument`` – a flat string; document positions equal plain-text
  offsets.
* ``RichDocument`` – a sequence of blocks (paragraphs).  Positions follow the
  structural convention used by rich-text editors: block ``k`` opens at
  position ``s_k``, its first character sits at ``s_k + 1`` and the next
  block opens at ``s_k + len_k + 2``.

Both expose the plain-text projection used as the coordinate space for
analysis, a ``PositionMap`` from projection offsets to document positions,
and ``replace()`` which mutates the document and returns the ``EditStep``
describing the change so that stored positions can be mapped through it.
"""
from __future__ import annotations

import bisect
import dataclasses
import logging
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Edit steps (position mapping transform)
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class EditStep:
    """Replacement of ``old_size`` positions at ``start`` by ``new_size`` positions."""

    start: int
    old_size: int
    new_size: int

    @property
    def end(self) -> int:
        return self.start + self.old_size

    @property
    def delta(self) -> int:
        return self.new_size - self.old_size

    def map(self, pos: int, bias: int = 1) -> int:
        """
        Map a pre-edit position to its post-edit equivalent.

        Positions inside the replaced range collapse onto its start
        (``bias < 0``) or onto the end of the inserted content (``bias > 0``).
        The range boundaries themselves stick to their own side unless the
        step is a pure insertion, in which case *bias* decides.
        """
        if pos < self.start:
            return pos
        if pos > self.end:
            return pos + self.delta
        if self.old_size == 0:
            side = bias
        elif pos == self.start:
            side = -1
        elif pos == self.end:
            side = 1
        else:
            side = bias
        return self.start if side < 0 else self.start + self.new_size

    def touches(self, from_: int, to: int) -> bool:
        """True when this step changes content inside ``[from_, to)``."""
        if self.old_size == 0:
            return from_ < self.start < to
        return self.start < to and self.end > from_


@dataclasses.dataclass(frozen=True)
class EditMapping:
    """An ordered sequence of steps, applied one after another."""

    steps: Tuple[EditStep, ...] = ()

    @classmethod
    def of(cls, steps: Iterable[EditStep]) -> "EditMapping":
        return cls(tuple(steps))

    def map(self, pos: int, bias: int = 1) -> int:
        for step in self.steps:
            pos = step.map(pos, bias)
        return pos

    def map_span(self, from_: int, to: int) -> Tuple[int, int]:
        """Map a highlight range; insertions at either edge stay outside it."""
        return self.map(from_, 1), self.map(to, -1)

    def touches(self, from_: int, to: int) -> bool:
        for step in self.steps:
            if step.touches(from_, to):
                return True
            from_, to = step.map(from_, 1), step.map(to, -1)
        return False


# ---------------------------------------------------------------------------
# Position map
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class PositionMap:
    """
    Plain-text projection of a document plus, for each of its characters, the
    document position it came from.

    ``separators`` holds the projection indices of characters synthesised
    between blocks; they map onto the closing position of the preceding
    block and cover no document content of their own.
    """

    text: str
    positions: Tuple[int, ...]
    separators: FrozenSet[int] = frozenset()

    def __len__(self) -> int:
        return len(self.text)

    def span_for(self, offset: int, length: int) -> Optional[Tuple[int, int]]:
        """Document range covered by ``text[offset:offset + length]`` or None."""
        if length <= 0 or offset < 0 or offset + length > len(self.positions):
            return None
        last = offset + length - 1
        from_ = self.positions[offset]
        to = self.positions[last] + (0 if last in self.separators else 1)
        if from_ >= to:
            return None
        return from_, to

    def offset_range(self, from_: int, to: int) -> Tuple[int, int]:
        """Projection ``[start, end)`` of the characters whose positions fall in ``[from_, to)``."""
        start = bisect.bisect_left(self.positions, from_)
        end = bisect.bisect_left(self.positions, to)
        return start, end


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class PlainDocument:
    """Flat text document; positions and offsets coincide."""

    def __init__(self, text: str = "") -> None:
        self._text = text
        self.revision = 0

    @property
    def plain_text(self) -> str:
        return self._text

    @property
    def size(self) -> int:
        return len(self._text)

    def position_map(self) -> PositionMap:
        return PositionMap(self._text, tuple(range(len(self._text))))

    def text_between(self, from_: int, to: int) -> str:
        return self._text[from_:to]

    def replace(self, from_: int, to: int, text: str) -> EditStep:
        if not 0 <= from_ <= to <= len(self._text):
            raise ValueError(
                f"Invalid range {from_}..{to} for document of size {len(self._text)}"
            )
        self._text = self._text[:from_] + text + self._text[to:]
        self.revision += 1
        return EditStep(from_, to - from_, len(text))

    def to_dict(self) -> dict:
        return {"kind": "plain", "text": self._text, "size": self.size}


class RichDocument:
    """
    Block-structured document.

    Newlines in replacement text split the enclosing block, so each newline
    occupies two positions (a block close and a block open).
    """

    def __init__(self, blocks: Optional[Sequence[str]] = None) -> None:
        self._blocks: List[str] = list(blocks) if blocks else [""]
        self.revision = 0

    @classmethod
    def from_text(cls, text: str) -> "RichDocument":
        return cls(text.split("\n"))

    @property
    def blocks(self) -> List[str]:
        return list(self._blocks)

    @property
    def size(self) -> int:
        return sum(len(b) + 2 for b in self._blocks)

    @property
    def plain_text(self) -> str:
        return self.position_map().text

    def _block_starts(self) -> List[int]:
        starts = []
        pos = 0
        for block in self._blocks:
            starts.append(pos)
            pos += len(block) + 2
        return starts

    def position_map(self) -> PositionMap:
        text: List[str] = []
        positions: List[int] = []
        separators = set()
        for start, block in zip(self._block_starts(), self._blocks):
            if not block:
                continue
            if text and not text[-1].isspace():
                separators.add(len(text))
                text.append(" ")
                positions.append(positions[-1] + 1)
            for i, ch in enumerate(block):
                text.append(ch)
                positions.append(start + 1 + i)
        return PositionMap("".join(text), tuple(positions), frozenset(separators))

    def _resolve(self, pos: int) -> Tuple[int, int]:
        """Return ``(block_index, char_index)`` for a position inside block content."""
        for index, (start, block) in enumerate(zip(self._block_starts(), self._blocks)):
            if start + 1 <= pos <= start + 1 + len(block):
                return index, pos - start - 1
        raise ValueError(f"Position {pos} is not inside any block")

    def text_between(self, from_: int, to: int) -> str:
        (bi, ci), (bj, cj) = self._resolve(from_), self._resolve(to)
        if bi == bj:
            return self._blocks[bi][ci:cj]
        parts = [self._blocks[bi][ci:]] + self._blocks[bi + 1:bj] + [self._blocks[bj][:cj]]
        return "\n".join(parts)

    def replace(self, from_: int, to: int, text: str) -> EditStep:
        if from_ > to:
            raise ValueError(f"Invalid range {from_}..{to}")
        (bi, ci), (bj, cj) = self._resolve(from_), self._resolve(to)
        merged = self._blocks[bi][:ci] + text + self._blocks[bj][cj:]
        self._blocks[bi:bj + 1] = merged.split("\n")
        self.revision += 1
        return EditStep(from_, to - from_, len(text) + text.count("\n"))

    def to_dict(self) -> dict:
        return {"kind": "rich", "blocks": self.blocks, "size": self.size}
