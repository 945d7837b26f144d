# Copyright 2025 David Corbett
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Coverage tables and class definition tables.

These are the two structures that every kind of subtable shares. A
coverage table is an ordered set of glyph IDs, where each member has an
ordinal called its coverage index. Subtables store per-glyph data in
arrays indexed by coverage index. A class definition table partitions
glyph IDs into numbered classes. Each has two formats.
"""


from __future__ import annotations


__all__ = [
    'ClassDef',
    'ClassDefFormat1',
    'ClassDefFormat2',
    'ClassRangeRecord',
    'Coverage',
    'CoverageFormat1',
    'CoverageFormat2',
    'RangeRecord',
    'parse_class_def',
    'parse_coverage',
]


import dataclasses
import functools
from typing import ClassVar
from typing import Final
from typing import NamedTuple
from typing import TYPE_CHECKING

from gsub_decoder.errors import UnsupportedSubformat


if TYPE_CHECKING:
    from collections.abc import Iterator

    from gsub_decoder.parser import Parser


#: The class of every glyph that a class definition table does not
#: mention.
DEFAULT_CLASS: Final[int] = 0


class RangeRecord(NamedTuple):
    """A range of consecutive glyph IDs in a coverage table.
    """

    #: The first glyph ID in the range.
    start_glyph_id: int

    #: The last glyph ID in the range, inclusive.
    end_glyph_id: int

    #: The coverage index of `start_glyph_id`.
    start_coverage_index: int


class ClassRangeRecord(NamedTuple):
    """A range of consecutive glyph IDs in the same class.
    """

    #: The first glyph ID in the range.
    start_glyph_id: int

    #: The last glyph ID in the range, inclusive.
    end_glyph_id: int

    #: The class of every glyph in the range.
    class_value: int


@dataclasses.dataclass(frozen=True)
class CoverageFormat1:
    """A coverage table that lists its glyphs.

    The coverage index of a glyph is its position in `glyphs`.
    """

    FORMAT: ClassVar[int] = 1

    #: The glyph IDs, which should be in increasing order.
    glyphs: tuple[int, ...]

    def index(self, glyph: int) -> int | None:
        """Returns the coverage index of a glyph.

        Args:
            glyph: A glyph ID.

        Returns:
            The coverage index of `glyph`, or ``None`` if this coverage
            table does not cover it.
        """
        return self._indexes.get(glyph)

    @functools.cached_property
    def _indexes(self) -> dict[int, int]:
        indexes: dict[int, int] = {}
        for i, glyph in enumerate(self.glyphs):
            indexes.setdefault(glyph, i)
        return indexes

    def __contains__(self, glyph: object) -> bool:
        return isinstance(glyph, int) and glyph in self._indexes

    def __iter__(self) -> Iterator[int]:
        return iter(self.glyphs)

    def __len__(self) -> int:
        return len(self.glyphs)


@dataclasses.dataclass(frozen=True)
class CoverageFormat2:
    """A coverage table that lists ranges of glyphs.

    The ranges should be sorted and disjoint, and their coverage indexes
    should be consecutive, but nothing checks that. The ranges are kept
    in their original order and coverage indexes are computed from their
    own `RangeRecord.start_coverage_index` values.
    """

    FORMAT: ClassVar[int] = 2

    #: The ranges.
    ranges: tuple[RangeRecord, ...]

    @functools.cached_property
    def glyphs(self) -> tuple[int, ...]:
        """The covered glyph IDs, range by range.
        """
        return tuple(glyph for r in self.ranges for glyph in range(r.start_glyph_id, r.end_glyph_id + 1))

    def index(self, glyph: int) -> int | None:
        """Returns the coverage index of a glyph.

        Args:
            glyph: A glyph ID.

        Returns:
            The coverage index of `glyph` according to the first range
            containing it, or ``None`` if no range contains it.
        """
        for r in self.ranges:
            if r.start_glyph_id <= glyph <= r.end_glyph_id:
                return r.start_coverage_index + glyph - r.start_glyph_id
        return None

    def __contains__(self, glyph: object) -> bool:
        return isinstance(glyph, int) and self.index(glyph) is not None

    def __iter__(self) -> Iterator[int]:
        return iter(self.glyphs)

    def __len__(self) -> int:
        return sum(max(r.end_glyph_id - r.start_glyph_id + 1, 0) for r in self.ranges)


type Coverage = CoverageFormat1 | CoverageFormat2


@dataclasses.dataclass(frozen=True)
class ClassDefFormat1:
    """A class definition table that lists the classes of consecutive
    glyphs.
    """

    FORMAT: ClassVar[int] = 1

    #: The first glyph ID with a listed class.
    start_glyph_id: int

    #: The classes of `start_glyph_id` and the glyph IDs after it.
    class_values: tuple[int, ...]

    def class_of(self, glyph: int) -> int:
        """Returns the class of a glyph.

        Args:
            glyph: A glyph ID.
        """
        if 0 <= (i := glyph - self.start_glyph_id) < len(self.class_values):
            return self.class_values[i]
        return DEFAULT_CLASS

    def classes(self) -> dict[int, int]:
        """Returns a mapping from glyph IDs to the classes this table
        lists for them.
        """
        return {self.start_glyph_id + i: class_value for i, class_value in enumerate(self.class_values)}


@dataclasses.dataclass(frozen=True)
class ClassDefFormat2:
    """A class definition table that lists ranges of glyphs in the same
    class.
    """

    FORMAT: ClassVar[int] = 2

    #: The ranges.
    ranges: tuple[ClassRangeRecord, ...]

    def class_of(self, glyph: int) -> int:
        """Returns the class of a glyph.

        Args:
            glyph: A glyph ID.

        Returns:
            The class of the first range containing `glyph`, or
            `DEFAULT_CLASS` if no range contains it.
        """
        for r in self.ranges:
            if r.start_glyph_id <= glyph <= r.end_glyph_id:
                return r.class_value
        return DEFAULT_CLASS

    def classes(self) -> dict[int, int]:
        """Returns a mapping from glyph IDs to the classes this table
        lists for them.

        If ranges overlap, the first one wins, as in `class_of`.
        """
        classes: dict[int, int] = {}
        for r in self.ranges:
            for glyph in range(r.start_glyph_id, r.end_glyph_id + 1):
                classes.setdefault(glyph, r.class_value)
        return classes


type ClassDef = ClassDefFormat1 | ClassDefFormat2


def parse_coverage(p: Parser) -> Coverage:
    """Decodes a coverage table.

    Args:
        p: A parser at the start of the coverage table.

    Raises:
        UnsupportedSubformat: If the format is not 1 or 2.
    """
    format_offset = p.position
    match p.parse_uint16():
        case CoverageFormat1.FORMAT:
            return CoverageFormat1(p.parse_uint16_list())
        case CoverageFormat2.FORMAT:
            return CoverageFormat2(p.parse_record_list(RangeRecord))
        case format:
            raise UnsupportedSubformat(format_offset, 'coverage format', {CoverageFormat1.FORMAT, CoverageFormat2.FORMAT}, format)


def parse_class_def(p: Parser) -> ClassDef:
    """Decodes a class definition table.

    Args:
        p: A parser at the start of the class definition table.

    Raises:
        UnsupportedSubformat: If the format is not 1 or 2.
    """
    format_offset = p.position
    match p.parse_uint16():
        case ClassDefFormat1.FORMAT:
            start_glyph_id = p.parse_uint16()
            return ClassDefFormat1(start_glyph_id, p.parse_uint16_list())
        case ClassDefFormat2.FORMAT:
            return ClassDefFormat2(p.parse_record_list(ClassRangeRecord))
        case format:
            raise UnsupportedSubformat(format_offset, 'class definition format', {ClassDefFormat1.FORMAT, ClassDefFormat2.FORMAT}, format)
