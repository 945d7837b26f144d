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

"""The script list, feature list, and lookup list.

GSUB and GPOS share these structures. The script list and feature list
refer to features and lookups by index; the indexes are kept as they
are.
"""


from __future__ import annotations


__all__ = [
    'Feature',
    'FeatureRecord',
    'LangSys',
    'LangSysRecord',
    'Lookup',
    'LookupFlag',
    'Script',
    'ScriptRecord',
    'parse_feature_list',
    'parse_lookup_list',
    'parse_script_list',
]


import enum
import logging
from typing import Final
from typing import NamedTuple
from typing import TYPE_CHECKING

import fontTools.otlLib.builder

from gsub_decoder.errors import UnknownLookupType
from gsub_decoder.lookups import SUBTABLE_PARSERS
from gsub_decoder.lookups import parse_subtable
from gsub_decoder.parser import Parser


if TYPE_CHECKING:
    from fontTools.misc.textTools import Tag

    from gsub_decoder.lookups import Subtable


log = logging.getLogger(__name__)


#: The value of ``requiredFeatureIndex`` that means there is no required
#: feature.
NO_REQUIRED_FEATURE: Final[int] = 0xFFFF


class LookupFlag(enum.IntFlag):
    """The bits of a lookup’s flags.
    """

    RIGHT_TO_LEFT = fontTools.otlLib.builder.LOOKUP_FLAG_RIGHT_TO_LEFT
    IGNORE_BASE_GLYPHS = fontTools.otlLib.builder.LOOKUP_FLAG_IGNORE_BASE_GLYPHS
    IGNORE_LIGATURES = fontTools.otlLib.builder.LOOKUP_FLAG_IGNORE_LIGATURES
    IGNORE_MARKS = fontTools.otlLib.builder.LOOKUP_FLAG_IGNORE_MARKS
    USE_MARK_FILTERING_SET = fontTools.otlLib.builder.LOOKUP_FLAG_USE_MARK_FILTERING_SET
    MARK_ATTACHMENT_TYPE_MASK = 0xFF00


class LangSys(NamedTuple):
    """A language system table.
    """

    #: The index of the feature that is always applied for this
    #: language system, or ``None`` if there is none.
    required_feature_index: int | None

    #: The indexes of the features in the feature list.
    feature_indices: tuple[int, ...]


class LangSysRecord(NamedTuple):
    tag: Tag
    lang_sys: LangSys | None


class Script(NamedTuple):
    """A script table.
    """

    #: The language system to use when there is no record for the
    #: language.
    default_lang_sys: LangSys | None

    lang_sys_records: tuple[LangSysRecord, ...]


class ScriptRecord(NamedTuple):
    tag: Tag
    script: Script | None


class Feature(NamedTuple):
    """A feature table.
    """

    #: The offset of the feature parameters, relative to the feature
    #: table, or 0 if there are none. Their layout depends on the
    #: feature tag, so they are not decoded.
    feature_params_offset: int

    #: The indexes of the lookups in the lookup list.
    lookup_list_indices: tuple[int, ...]


class FeatureRecord(NamedTuple):
    tag: Tag
    feature: Feature | None


class Lookup(NamedTuple):
    """A lookup table.

    Other structures refer to a lookup by its index in the lookup list.
    """

    #: The lookup type. A subtable’s type may differ only if this is
    #: the extension lookup type.
    lookup_type: int

    lookup_flag: LookupFlag

    #: The subtables, in order.
    subtables: tuple[Subtable | None, ...]

    #: The index of the mark glyph set in GDEF, if `lookup_flag`
    #: includes `LookupFlag.USE_MARK_FILTERING_SET`.
    mark_filtering_set: int | None

    @property
    def mark_attachment_type(self) -> int:
        """The mark attachment class to restrict marks to, or 0 if marks
        are not so restricted.
        """
        return (self.lookup_flag & LookupFlag.MARK_ATTACHMENT_TYPE_MASK) >> 8


def _parse_lang_sys(p: Parser) -> LangSys:
    p.parse_offset16()  # lookupOrderOffset, reserved
    required_feature_index = p.parse_uint16()
    return LangSys(
        None if required_feature_index == NO_REQUIRED_FEATURE else required_feature_index,
        p.parse_uint16_list(),
    )


def _parse_lang_sys_record(p: Parser) -> LangSysRecord:
    tag = p.parse_tag()
    return LangSysRecord(tag, p.parse_pointer(_parse_lang_sys))


def _parse_script(p: Parser) -> Script:
    default_lang_sys = p.parse_pointer(_parse_lang_sys)
    return Script(default_lang_sys, p.parse_list(_parse_lang_sys_record))


def _parse_script_record(p: Parser) -> ScriptRecord:
    tag = p.parse_tag()
    return ScriptRecord(tag, p.parse_pointer(_parse_script))


def parse_script_list(p: Parser) -> tuple[ScriptRecord, ...]:
    """Decodes a script list.

    Args:
        p: A parser at the start of the script list.
    """
    return p.parse_list(_parse_script_record)


def _parse_feature(p: Parser) -> Feature:
    feature_params_offset = p.parse_offset16()
    return Feature(feature_params_offset, p.parse_uint16_list())


def _parse_feature_record(p: Parser) -> FeatureRecord:
    tag = p.parse_tag()
    return FeatureRecord(tag, p.parse_pointer(_parse_feature))


def parse_feature_list(p: Parser) -> tuple[FeatureRecord, ...]:
    """Decodes a feature list.

    Args:
        p: A parser at the start of the feature list.
    """
    return p.parse_list(_parse_feature_record)


def _parse_lookup(p: Parser) -> Lookup:
    type_offset = p.position
    lookup_type = p.parse_uint16()
    if lookup_type not in SUBTABLE_PARSERS:
        raise UnknownLookupType(type_offset, 'lookup type', SUBTABLE_PARSERS.keys(), lookup_type)
    lookup_flag = LookupFlag(p.parse_uint16())
    log.debug('Decoding lookup at 0x%X of type %d', p.offset, lookup_type)
    subtables = p.parse_list(Parser.pointer(lambda q: parse_subtable(q, lookup_type, type_offset)))
    mark_filtering_set = p.parse_uint16() if lookup_flag & LookupFlag.USE_MARK_FILTERING_SET else None
    return Lookup(lookup_type, lookup_flag, subtables, mark_filtering_set)


def parse_lookup_list(p: Parser) -> tuple[Lookup | None, ...]:
    """Decodes a lookup list.

    Args:
        p: A parser at the start of the lookup list.

    Returns:
        The lookups, in lookup list order. A lookup is ``None`` if its
        offset is null.

    Raises:
        UnknownLookupType: If a lookup has an unknown type.
        DecodeError: If a lookup is malformed.
    """
    return p.parse_list(Parser.pointer(_parse_lookup))
