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


from __future__ import annotations

import struct

import pytest

from gsub_decoder.coverage import ClassDefFormat1
from gsub_decoder.coverage import ClassDefFormat2
from gsub_decoder.coverage import ClassRangeRecord
from gsub_decoder.coverage import CoverageFormat1
from gsub_decoder.coverage import CoverageFormat2
from gsub_decoder.coverage import RangeRecord
from gsub_decoder.errors import UnknownLookupType
from gsub_decoder.errors import UnsupportedSubformat
from gsub_decoder.lookups import AlternateSubstFormat1
from gsub_decoder.lookups import ChainContextSubstFormat1
from gsub_decoder.lookups import ChainContextSubstFormat2
from gsub_decoder.lookups import ChainContextSubstFormat3
from gsub_decoder.lookups import ChainedSequenceRule
from gsub_decoder.lookups import ContextSubstFormat1
from gsub_decoder.lookups import ContextSubstFormat2
from gsub_decoder.lookups import ContextSubstFormat3
from gsub_decoder.lookups import ExtensionSubstFormat1
from gsub_decoder.lookups import Ligature
from gsub_decoder.lookups import LigatureSubstFormat1
from gsub_decoder.lookups import MultipleSubstFormat1
from gsub_decoder.lookups import ReverseChainSingleSubstFormat1
from gsub_decoder.lookups import SUBTABLE_PARSERS
from gsub_decoder.lookups import SequenceLookupRecord
from gsub_decoder.lookups import SequenceRule
from gsub_decoder.lookups import SingleSubstFormat1
from gsub_decoder.lookups import SingleSubstFormat2
from gsub_decoder.table import decode_subtable


def u16(*values: int) -> bytes:
    return struct.pack(f'>{len(values)}H', *values)


def u32(value: int) -> bytes:
    return struct.pack('>I', value)


SINGLE_SUBSTITUTION = bytes.fromhex('0001 0006 0005 0001 0001 0014')


def test_dispatch_table_covers_all_lookup_types() -> None:
    assert sorted(SUBTABLE_PARSERS) == [1, 2, 3, 4, 5, 6, 7, 8]
    with pytest.raises(TypeError):
        SUBTABLE_PARSERS[9] = SUBTABLE_PARSERS[1]  # type: ignore[index]


@pytest.mark.parametrize('lookup_type', [0, 9, 0xFFFF])
def test_unknown_lookup_type(lookup_type: int) -> None:
    with pytest.raises(UnknownLookupType) as exc_info:
        decode_subtable(SINGLE_SUBSTITUTION, lookup_type)
    assert exc_info.value.offset == 0
    assert exc_info.value.field == 'lookup type'
    assert exc_info.value.expected == (1, 2, 3, 4, 5, 6, 7, 8)
    assert exc_info.value.actual == lookup_type


def test_single_substitution_format_1() -> None:
    subtable = decode_subtable(SINGLE_SUBSTITUTION, 1)
    assert subtable == SingleSubstFormat1(CoverageFormat1((20,)), 5)
    assert isinstance(subtable, SingleSubstFormat1)
    assert subtable.mapping() == {20: 25}


def test_single_substitution_negative_delta() -> None:
    subtable = decode_subtable(u16(1, 6, 0xFFFE, 1, 2, 0, 5), 1)
    assert subtable == SingleSubstFormat1(CoverageFormat1((0, 5)), -2)
    assert isinstance(subtable, SingleSubstFormat1)
    assert subtable.mapping() == {0: 0xFFFE, 5: 3}


def test_single_substitution_format_2() -> None:
    subtable = decode_subtable(u16(2, 10, 2, 30, 31, 1, 2, 20, 21), 1)
    assert subtable == SingleSubstFormat2(CoverageFormat1((20, 21)), (30, 31))
    assert isinstance(subtable, SingleSubstFormat2)
    assert subtable.mapping() == {20: 30, 21: 31}


def test_single_substitution_at_offset() -> None:
    assert decode_subtable(bytes(5) + SINGLE_SUBSTITUTION, 1, 5) == decode_subtable(SINGLE_SUBSTITUTION, 1)


def test_negative_offset() -> None:
    with pytest.raises(ValueError, match='^Negative offset: -2$'):
        decode_subtable(bytes(2) + SINGLE_SUBSTITUTION, 1, -2)


def test_null_coverage() -> None:
    subtable = decode_subtable(u16(1, 0, 5), 1)
    assert subtable == SingleSubstFormat1(None, 5)
    assert isinstance(subtable, SingleSubstFormat1)
    assert subtable.mapping() == {}


def test_unsupported_single_substitution_format() -> None:
    with pytest.raises(UnsupportedSubformat) as exc_info:
        decode_subtable(bytes(3) + u16(3), 1, 3)
    assert exc_info.value.offset == 3
    assert str(exc_info.value) == '0x3: lookup type 1 format must be one of {1, 2}, not 3'


def test_multiple_substitution() -> None:
    subtable = decode_subtable(u16(1, 20, 2, 10, 16, 2, 40, 41, 1, 42, 1, 2, 5, 6), 2)
    assert subtable == MultipleSubstFormat1(CoverageFormat1((5, 6)), ((40, 41), (42,)))
    assert isinstance(subtable, MultipleSubstFormat1)
    assert subtable.mapping() == {5: (40, 41), 6: (42,)}


def test_alternate_substitution_with_null_set() -> None:
    subtable = decode_subtable(u16(1, 16, 2, 0, 10, 2, 50, 51, 1, 2, 5, 6), 3)
    assert subtable == AlternateSubstFormat1(CoverageFormat1((5, 6)), (None, (50, 51)))
    assert isinstance(subtable, AlternateSubstFormat1)
    assert subtable.mapping() == {6: (50, 51)}


def test_unsupported_alternate_substitution_format() -> None:
    with pytest.raises(UnsupportedSubformat) as exc_info:
        decode_subtable(u16(2), 3)
    assert exc_info.value.expected == (1,)


def test_ligature_substitution() -> None:
    subtable = decode_subtable(u16(1, 28, 1, 8, 2, 6, 14, 100, 3, 6, 7, 101, 2, 6, 1, 1, 5), 4)
    assert subtable == LigatureSubstFormat1(
        CoverageFormat1((5,)),
        ((Ligature(100, (6, 7)), Ligature(101, (6,))),),
    )
    assert isinstance(subtable, LigatureSubstFormat1)
    assert subtable.mapping() == {(5, 6, 7): 100, (5, 6): 101}


def test_ligature_with_no_components() -> None:
    subtable = decode_subtable(u16(1, 16, 1, 8, 1, 4, 102, 0, 1, 1, 5), 4)
    assert subtable == LigatureSubstFormat1(CoverageFormat1((5,)), ((Ligature(102, ()),),))


def test_ligature_mapping_prefers_earlier_rules() -> None:
    subtable = LigatureSubstFormat1(
        CoverageFormat1((5,)),
        ((Ligature(100, (6,)), None, Ligature(101, (6,))), None),
    )
    assert subtable.mapping() == {(5, 6): 100}


def test_context_substitution_format_1() -> None:
    subtable = decode_subtable(u16(1, 22, 1, 8, 1, 4, 2, 1, 7, 0, 3, 1, 1, 5), 5)
    assert subtable == ContextSubstFormat1(
        CoverageFormat1((5,)),
        ((SequenceRule((7,), (SequenceLookupRecord(0, 3),)),),),
    )


def test_context_substitution_format_2() -> None:
    subtable = decode_subtable(u16(2, 26, 32, 2, 0, 12, 1, 4, 2, 1, 2, 1, 0, 1, 1, 5, 2, 1, 5, 6, 1), 5)
    assert subtable == ContextSubstFormat2(
        CoverageFormat1((5,)),
        ClassDefFormat2((ClassRangeRecord(5, 6, 1),)),
        (None, (SequenceRule((2,), (SequenceLookupRecord(1, 0),)),)),
    )


def test_context_substitution_format_3() -> None:
    subtable = decode_subtable(u16(3, 2, 1, 14, 20, 0, 2, 1, 1, 5, 1, 1, 6), 5)
    assert subtable == ContextSubstFormat3(
        (CoverageFormat1((5,)), CoverageFormat1((6,))),
        (SequenceLookupRecord(0, 2),),
    )


def test_unsupported_context_substitution_format() -> None:
    with pytest.raises(UnsupportedSubformat) as exc_info:
        decode_subtable(bytes(2) + u16(4), 5, 2)
    assert exc_info.value.offset == 2
    assert exc_info.value.field == 'lookup type 5 format'
    assert exc_info.value.expected == (1, 2, 3)
    assert exc_info.value.actual == 4


def test_chaining_context_substitution_format_1_without_context() -> None:
    subtable = decode_subtable(u16(1, 26, 1, 8, 1, 4, 0, 2, 7, 0, 1, 0, 4, 1, 1, 5), 6)
    assert subtable == ChainContextSubstFormat1(
        CoverageFormat1((5,)),
        ((ChainedSequenceRule((), (7,), (), (SequenceLookupRecord(0, 4),)),),),
    )


def test_chaining_context_substitution_format_2() -> None:
    subtable = decode_subtable(
        u16(2, 34, 0, 40, 0, 1, 14, 1, 4, 2, 3, 2, 2, 7, 1, 9, 0, 1, 1, 5, 1, 5, 1, 1),
        6,
    )
    assert subtable == ChainContextSubstFormat2(
        CoverageFormat1((5,)),
        None,
        ClassDefFormat1(5, (1,)),
        None,
        ((ChainedSequenceRule((3, 2), (7,), (9,), ()),),),
    )


def test_chaining_context_substitution_format_3() -> None:
    subtable = decode_subtable(u16(3, 1, 18, 1, 24, 0, 1, 0, 1, 1, 1, 4, 1, 1, 5), 6)
    assert subtable == ChainContextSubstFormat3(
        (CoverageFormat1((4,)),),
        (CoverageFormat1((5,)),),
        (),
        (SequenceLookupRecord(0, 1),),
    )


def test_unsupported_chaining_context_substitution_format() -> None:
    with pytest.raises(UnsupportedSubformat) as exc_info:
        decode_subtable(u16(0), 6)
    assert exc_info.value.offset == 0
    assert exc_info.value.field == 'lookup type 6 format'


def test_unsupported_chaining_context_substitution_format_at_offset() -> None:
    with pytest.raises(UnsupportedSubformat) as exc_info:
        decode_subtable(bytes(2) + u16(4), 6, 2)
    assert exc_info.value.offset == 2
    assert exc_info.value.actual == 4
    assert exc_info.value.expected == (1, 2, 3)


def test_extension() -> None:
    subtable = decode_subtable(u16(1, 1) + u32(8) + SINGLE_SUBSTITUTION, 7)
    assert subtable == ExtensionSubstFormat1(1, decode_subtable(SINGLE_SUBSTITUTION, 1))


def test_extension_offset_is_relative_to_extension() -> None:
    data = bytes(4) + u16(1, 1) + u32(10) + bytes(2) + SINGLE_SUBSTITUTION
    assert decode_subtable(data, 7, 4) == ExtensionSubstFormat1(1, decode_subtable(SINGLE_SUBSTITUTION, 1))


def test_null_extension() -> None:
    assert decode_subtable(u16(1, 4) + u32(0), 7) == ExtensionSubstFormat1(4, None)


@pytest.mark.parametrize('extension_lookup_type', [0, 7, 9])
def test_unknown_extension_lookup_type(extension_lookup_type: int) -> None:
    with pytest.raises(UnknownLookupType) as exc_info:
        decode_subtable(u16(1, extension_lookup_type) + u32(8) + u16(1, 1) + u32(8), 7)
    assert exc_info.value.offset == 2
    assert exc_info.value.field == 'extension lookup type'
    assert exc_info.value.expected == (1, 2, 3, 4, 5, 6, 8)
    assert exc_info.value.actual == extension_lookup_type


def test_extension_propagates_errors() -> None:
    with pytest.raises(UnsupportedSubformat) as exc_info:
        decode_subtable(u16(1, 1) + u32(8) + u16(3), 7)
    assert exc_info.value.offset == 8
    assert exc_info.value.field == 'lookup type 1 format'


def test_reverse_chaining_single_substitution() -> None:
    subtable = decode_subtable(u16(1, 18, 1, 26, 1, 32, 2, 30, 31, 1, 2, 5, 6, 1, 1, 4, 2, 1, 7, 7, 0), 8)
    assert subtable == ReverseChainSingleSubstFormat1(
        CoverageFormat1((5, 6)),
        (CoverageFormat1((4,)),),
        (CoverageFormat2((RangeRecord(7, 7, 0),)),),
        (30, 31),
    )
    assert isinstance(subtable, ReverseChainSingleSubstFormat1)
    assert subtable.mapping() == {5: 30, 6: 31}


SHIFTED_COVERAGE = CoverageFormat2((RangeRecord(100, 101, 1),))


def test_mappings_use_coverage_indexes() -> None:
    assert SingleSubstFormat2(SHIFTED_COVERAGE, (30, 31, 32)).mapping() == {100: 31, 101: 32}
    assert MultipleSubstFormat1(SHIFTED_COVERAGE, ((40,), (41,), (42, 43))).mapping() == {100: (41,), 101: (42, 43)}
    assert AlternateSubstFormat1(SHIFTED_COVERAGE, ((50,), None, (52,))).mapping() == {101: (52,)}
    assert LigatureSubstFormat1(
        SHIFTED_COVERAGE,
        ((Ligature(60, (1,)),), (Ligature(61, (2,)),), None),
    ).mapping() == {(100, 2): 61}
    assert ReverseChainSingleSubstFormat1(SHIFTED_COVERAGE, (), (), (70, 71, 72)).mapping() == {100: 71, 101: 72}


def test_mapping_skips_out_of_range_coverage_indexes() -> None:
    assert SingleSubstFormat2(SHIFTED_COVERAGE, (30, 31)).mapping() == {100: 31}


def test_mapping_with_repeated_covered_glyph() -> None:
    assert SingleSubstFormat2(CoverageFormat1((5, 5, 6)), (30, 31, 32)).mapping() == {5: 30, 6: 32}
