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

r"""The primitive decoder.

OpenType Layout tables are trees of structures that point to each other
with offsets. An offset is never relative to the start of the font; it
is relative to the start of the structure that contains it. A `Parser`
therefore has two positions: its base, `Parser.offset`, which is the
first byte of the structure being decoded, and its cursor,
`Parser.relative_offset`, which is relative to the base. Following an
offset creates a new `Parser` whose base is the target structure, so a
decoding function only ever sees its own structure’s base.

The reads themselves are done by the `OTTableReader` that fontTools
decompiles its own tables with. A `Parser` checks each read against the
end of the buffer before handing it to the reader, so a short buffer
raises `TruncatedInput` instead of a `struct.error`.

A decoding function is any callable that takes a `Parser` positioned at
the start of a structure and returns the decoded value. The composite
reads (`Parser.parse_list`, `Parser.parse_list_of_lists`, and so on)
take decoding functions for their items.

An offset of zero means “no structure”. Pointer reads return ``None``
for it instead of decoding anything.
"""


from __future__ import annotations


__all__ = [
    'NULL_OFFSET',
    'Parser',
]


from typing import Final
from typing import NamedTuple
from typing import TYPE_CHECKING
from typing import overload

from fontTools.ttLib.tables.otBase import OTTableReader

from gsub_decoder.errors import TruncatedInput


if TYPE_CHECKING:
    from collections.abc import Callable

    from fontTools.misc.textTools import Tag


#: The offset value that means a structure is absent.
NULL_OFFSET: Final[int] = 0


#: The table tag given to every `OTTableReader`.
_TABLE_TAG: Final[str] = 'GSUB'


class Parser:
    """A cursor over a byte buffer, anchored at the start of a
    structure.

    Attributes:
        reader: The underlying reader. Its ``offset`` is this parser’s
            base and its ``pos`` is the absolute position of the next
            read.
    """

    reader: OTTableReader

    def __init__(self, data: bytes, offset: int) -> None:
        """Initializes this `Parser`.

        Args:
            data: The buffer. It is never modified.
            offset: The absolute offset of the structure to decode.

        Raises:
            ValueError: If `offset` is negative.
        """
        if offset < 0:
            raise ValueError(f'Negative offset: {offset}')
        self.reader = OTTableReader(data, offset=offset, tableTag=_TABLE_TAG)

    @classmethod
    def from_reader(cls, reader: OTTableReader) -> Parser:
        """Returns a parser that reads with an existing reader.

        Args:
            reader: A reader whose base is the start of the structure to
                decode.
        """
        parser = cls.__new__(cls)
        parser.reader = reader
        return parser

    def __repr__(self) -> str:
        return f'Parser(<{len(self.data)} bytes>, 0x{self.offset:X}+0x{self.relative_offset:X})'

    @property
    def data(self) -> bytes:
        """The buffer.
        """
        return self.reader.data

    @property
    def offset(self) -> int:
        """The absolute offset of the structure being decoded. All
        offsets read by this parser are relative to it.
        """
        return self.reader.offset

    @property
    def position(self) -> int:
        """The absolute offset of the next read.
        """
        return self.reader.pos

    @property
    def relative_offset(self) -> int:
        """The position of the next read, relative to `offset`.
        """
        return self.reader.pos - self.reader.offset

    def at(self, relative_offset: int) -> Parser:
        """Returns a parser for the structure at an offset from this
        parser’s base.

        Args:
            relative_offset: The offset of the structure, relative to
                `offset`.
        """
        return Parser.from_reader(self.reader.getSubReader(relative_offset))

    def _check(self, size: int) -> None:
        position = self.position
        if position + size > len(self.data):
            raise TruncatedInput(position, size, len(self.data))

    def parse_uint8(self) -> int:
        self._check(1)
        return self.reader.readUInt8()

    def parse_uint16(self) -> int:
        self._check(2)
        return self.reader.readUShort()

    def parse_int16(self) -> int:
        self._check(2)
        return self.reader.readShort()

    def parse_uint32(self) -> int:
        self._check(4)
        return self.reader.readULong()

    def parse_offset16(self) -> int:
        self._check(2)
        return self.reader.readUShort()

    def parse_offset32(self) -> int:
        self._check(4)
        return self.reader.readULong()

    def parse_tag(self) -> Tag:
        """Reads a four-byte tag, such as a script or feature tag.
        """
        self._check(4)
        return self.reader.readTag()

    def parse_pointer[T](self, parse_item: Callable[[Parser], T]) -> T | None:
        """Reads a 16-bit offset and decodes the structure it points to.

        Args:
            parse_item: The decoding function for the structure.

        Returns:
            The decoded structure, or ``None`` if the offset is null, in
            which case `parse_item` is not called.
        """
        relative_offset = self.parse_offset16()
        if relative_offset == NULL_OFFSET:
            return None
        return parse_item(self.at(relative_offset))

    def parse_pointer32[T](self, parse_item: Callable[[Parser], T]) -> T | None:
        """Reads a 32-bit offset and decodes the structure it points to.

        Args:
            parse_item: The decoding function for the structure.

        Returns:
            The decoded structure, or ``None`` if the offset is null, in
            which case `parse_item` is not called.
        """
        relative_offset = self.parse_offset32()
        if relative_offset == NULL_OFFSET:
            return None
        return parse_item(self.at(relative_offset))

    @staticmethod
    def pointer[T](parse_item: Callable[[Parser], T]) -> Callable[[Parser], T | None]:
        """Converts a decoding function for a structure into a decoding
        function for a 16-bit offset to that structure.

        This is useful for lists of offsets, e.g. ``p.parse_list(
        Parser.pointer(parse_coverage))`` decodes a list of offsets to
        coverage tables. The offsets are relative to the base of the
        parser reading the list.

        Args:
            parse_item: The decoding function for the structure.
        """
        return lambda p: p.parse_pointer(parse_item)

    def parse_uint16_list(self, count: int | None = None) -> tuple[int, ...]:
        """Reads a list of 16-bit unsigned integers.

        Args:
            count: The number of integers, or ``None`` to read the
                number as a 16-bit count first.
        """
        if count is None:
            count = self.parse_uint16()
        if count <= 0:
            return ()
        self._check(2 * count)
        return tuple(self.reader.readUShortArray(count))

    def parse_list[T](self, parse_item: Callable[[Parser], T], count: int | None = None) -> tuple[T, ...]:
        """Reads a list of items that are stored one after another.

        Each item is decoded by `parse_item` from this parser itself,
        so the item’s offsets are relative to this parser’s base.

        Args:
            parse_item: The decoding function for one item.
            count: The number of items, or ``None`` to read the number
                as a 16-bit count first.
        """
        if count is None:
            count = self.parse_uint16()
        return tuple(parse_item(self) for _ in range(count))

    def parse_record_list[R: NamedTuple](self, record_type: type[R], count: int | None = None) -> tuple[R, ...]:
        """Reads an array of fixed-width records.

        Args:
            record_type: The record type. Each of its fields is stored
                as a 16-bit unsigned integer, in field order.
            count: The number of records, or ``None`` to read the number
                as a 16-bit count first.
        """
        if count is None:
            count = self.parse_uint16()
        width = len(record_type._fields)
        values = self.parse_uint16_list(count * width)
        return tuple(record_type._make(values[i:i + width]) for i in range(0, len(values), width))

    @overload
    def parse_list_of_lists(self) -> tuple[tuple[int, ...] | None, ...]:
        ...

    @overload
    def parse_list_of_lists[T](self, parse_item: Callable[[Parser], T]) -> tuple[tuple[T | None, ...] | None, ...]:
        ...

    def parse_list_of_lists[T](
        self,
        parse_item: Callable[[Parser], T] | None = None,
    ) -> tuple[tuple[int, ...] | None, ...] | tuple[tuple[T | None, ...] | None, ...]:
        """Reads a list of offsets to lists.

        The outer list is a 16-bit count followed by that many 16-bit
        offsets relative to this parser’s base. Each offset points to an
        inner list which is itself counted.

        Args:
            parse_item: ``None`` if each inner list is a list of 16-bit
                integers, such as glyph IDs. Otherwise, each inner list
                is a list of 16-bit offsets, relative to the start of the
                inner list, to items which `parse_item` decodes.

        Returns:
            A tuple with one element per outer offset. An element is
            ``None`` if its offset is null. Likewise, an item in an
            inner list is ``None`` if its offset is null.
        """
        if parse_item is None:
            return self.parse_list(Parser.pointer(Parser.parse_uint16_list))
        return self.parse_list(Parser.pointer(lambda p: p.parse_list(Parser.pointer(parse_item))))
