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

"""The GSUB table.
"""


from __future__ import annotations


__all__ = [
    'Gsub',
    'SUPPORTED_VERSION',
    'decode_subtable',
    'parse_gsub',
]


import dataclasses
import logging
from typing import Final
from typing import TYPE_CHECKING

from gsub_decoder.errors import UnsupportedVersion
from gsub_decoder.layout import parse_feature_list
from gsub_decoder.layout import parse_lookup_list
from gsub_decoder.layout import parse_script_list
from gsub_decoder.lookups import parse_subtable
from gsub_decoder.parser import Parser


if TYPE_CHECKING:
    from gsub_decoder.layout import FeatureRecord
    from gsub_decoder.layout import Lookup
    from gsub_decoder.layout import ScriptRecord
    from gsub_decoder.lookups import Subtable


log = logging.getLogger(__name__)


#: The only supported table version, as a 32-bit number whose high half
#: is the major version and whose low half is the minor version.
SUPPORTED_VERSION: Final[int] = 0x00010000


@dataclasses.dataclass(frozen=True)
class Gsub:
    """A decoded GSUB table.
    """

    major_version: int

    minor_version: int

    scripts: tuple[ScriptRecord, ...]

    features: tuple[FeatureRecord, ...]

    #: The lookups. Features and contextual subtables refer to lookups
    #: by their indexes in this tuple.
    lookups: tuple[Lookup | None, ...]


def parse_gsub(data: bytes, start: int = 0) -> Gsub:
    """Decodes a GSUB table.

    Args:
        data: A buffer containing the table.
        start: The offset of the table in `data`.

    Returns:
        The table, fully decoded.

    Raises:
        UnsupportedVersion: If the table’s version is not
            `SUPPORTED_VERSION`. Nothing after the version is read.
        DecodeError: If the table is malformed.
        ValueError: If `start` is negative.
    """
    p = Parser(data, start)
    major_version = p.parse_uint16()
    minor_version = p.parse_uint16()
    if (version := major_version << 16 | minor_version) != SUPPORTED_VERSION:
        raise UnsupportedVersion(start, 'GSUB version', {SUPPORTED_VERSION}, version)
    scripts = p.parse_pointer(parse_script_list) or ()
    features = p.parse_pointer(parse_feature_list) or ()
    lookups = p.parse_pointer(parse_lookup_list) or ()
    log.debug(
        'Decoded GSUB %d.%d at 0x%X with %d scripts, %d features, and %d lookups',
        major_version, minor_version, start, len(scripts), len(features), len(lookups),
    )
    return Gsub(major_version, minor_version, scripts, features, lookups)


def decode_subtable(data: bytes, lookup_type: int, offset: int = 0) -> Subtable:
    """Decodes a single GSUB subtable.

    Args:
        data: A buffer containing the subtable.
        lookup_type: The lookup type of the subtable.
        offset: The offset of the subtable in `data`.

    Raises:
        UnknownLookupType: If `lookup_type` is not a GSUB lookup type.
            The reported offset is `offset`.
        DecodeError: If the subtable is malformed.
        ValueError: If `offset` is negative.
    """
    return parse_subtable(Parser(data, offset), lookup_type, offset)
