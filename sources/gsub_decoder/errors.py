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

"""Errors raised while decoding a GSUB table.

Every error is fatal to the decode call that raised it. No decoding
function catches or translates a `DecodeError`, so the offset an error
reports is the one nearest the malformed byte.
"""


from __future__ import annotations


__all__ = [
    'DecodeError',
    'InvalidDiscriminant',
    'TruncatedInput',
    'UnknownLookupType',
    'UnsupportedSubformat',
    'UnsupportedVersion',
]


from typing import TYPE_CHECKING
from typing import override


if TYPE_CHECKING:
    from collections.abc import Iterable


class DecodeError(ValueError):
    """The input is not a GSUB table this package can decode.

    Attributes:
        offset: The absolute offset in the buffer at which the problem
            was detected.
    """

    def __init__(self, offset: int, message: str) -> None:
        super().__init__(f'0x{offset:X}: {message}')
        self.offset: int = offset


class InvalidDiscriminant(DecodeError):
    """A field that selects a layout holds a value with no layout.

    Attributes:
        field: The name of the field, qualified by its structure.
        expected: The values that would have been accepted, in
            increasing order.
        actual: The value that was read.
    """

    def __init__(self, offset: int, field: str, expected: Iterable[int], actual: int) -> None:
        self.field: str = field
        self.expected: tuple[int, ...] = tuple(sorted(expected))
        self.actual: int = actual
        super().__init__(
            offset,
            f'{field} must be one of {{{", ".join(map(self.format_value, self.expected))}}}, not {self.format_value(actual)}',
        )

    def format_value(self, value: int) -> str:
        """Returns a readable form of a value of this error’s field.

        Args:
            value: A possible value of the field.
        """
        return str(value)


class UnsupportedVersion(InvalidDiscriminant):
    """The table’s version is not the supported version.
    """

    @override
    def format_value(self, value: int) -> str:
        return f'0x{value:08X}'


class UnsupportedSubformat(InvalidDiscriminant):
    """A coverage table, class definition table, or subtable has an
    unknown format.
    """


class UnknownLookupType(InvalidDiscriminant):
    """A lookup, or an extension subtable, names an unknown lookup type.
    """


class TruncatedInput(DecodeError):
    """A read ran past the end of the buffer.

    Attributes:
        size: The number of bytes the read needed.
        length: The length of the buffer.
    """

    def __init__(self, offset: int, size: int, length: int) -> None:
        self.size: int = size
        self.length: int = length
        super().__init__(offset, f'reading {size} byte{"" if size == 1 else "s"} would overrun the {length}-byte buffer')
