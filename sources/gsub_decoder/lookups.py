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

r"""GSUB subtables.

A GSUB lookup has a lookup type from 1 to 8, and each of its subtables
has a format that selects among layouts for that type. This module has
one class per combination of lookup type and format, and one decoding
function per lookup type. `SUBTABLE_PARSERS` maps lookup types to their
decoding functions. Each decoding function reads the format and then the
fields of that format, and raises `UnsupportedSubformat` if there is no
such format.

Lookup type 7 is special. An extension subtable only holds another
lookup type and a 32-bit offset to a subtable of that type, which is
decoded through `SUBTABLE_PARSERS` again. The offset can be larger than
the 16-bit offsets lookups use, which is the only point of the type.

The classes are data only. Contextual subtables refer to other lookups
by their indexes in the lookup list; nothing here applies them. Some
classes have a ``mapping`` method, which pairs the glyphs in the
subtable’s coverage table with the data at their coverage indexes.
"""


from __future__ import annotations


__all__ = [
    'AlternateSubstFormat1',
    'ChainContextSubstFormat1',
    'ChainContextSubstFormat2',
    'ChainContextSubstFormat3',
    'ChainedSequenceRule',
    'ContextSubstFormat1',
    'ContextSubstFormat2',
    'ContextSubstFormat3',
    'EXTENSION_LOOKUP_TYPE',
    'ExtensionSubstFormat1',
    'Ligature',
    'LigatureSubstFormat1',
    'MultipleSubstFormat1',
    'ReverseChainSingleSubstFormat1',
    'SUBTABLE_PARSERS',
    'SequenceLookupRecord',
    'SequenceRule',
    'SingleSubstFormat1',
    'SingleSubstFormat2',
    'Subtable',
    'parse_subtable',
]


import dataclasses
import logging
import types
from typing import ClassVar
from typing import Final
from typing import NamedTuple
from typing import TYPE_CHECKING

from gsub_decoder.coverage import parse_class_def
from gsub_decoder.coverage import parse_coverage
from gsub_decoder.errors import UnknownLookupType
from gsub_decoder.errors import UnsupportedSubformat
from gsub_decoder.parser import Parser


if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Collection
    from collections.abc import Iterator
    from collections.abc import Mapping
    from collections.abc import Sequence

    from gsub_decoder.coverage import ClassDef
    from gsub_decoder.coverage import Coverage


log = logging.getLogger(__name__)


#: The lookup type of extension subtables.
EXTENSION_LOOKUP_TYPE: Final[int] = 7


#: The number of distinct glyph IDs. Glyph ID arithmetic wraps around
#: modulo this number.
GLYPH_ID_MODULUS: Final[int] = 0x10000


class SequenceLookupRecord(NamedTuple):
    """A reference to a lookup to apply at a position in a matched input
    sequence.
    """

    #: The index into the input sequence.
    sequence_index: int

    #: The index of the lookup in the lookup list.
    lookup_list_index: int


class Ligature(NamedTuple):
    """A ligature rule.
    """

    #: The glyph ID of the ligature.
    ligature_glyph: int

    #: The glyph IDs of the components after the first. The first
    #: component is the covered glyph whose ligature set contains this
    #: rule.
    components: tuple[int, ...]


class SequenceRule(NamedTuple):
    """A contextual rule.

    In `ContextSubstFormat1`, `input` contains glyph IDs; in
    `ContextSubstFormat2`, it contains classes.
    """

    #: The input sequence after the first element. The first element is
    #: implied by the rule set that contains this rule.
    input: tuple[int, ...]

    #: The lookups to apply to the input sequence.
    lookup_records: tuple[SequenceLookupRecord, ...]


class ChainedSequenceRule(NamedTuple):
    """A chained contextual rule.

    In `ChainContextSubstFormat1`, the sequences contain glyph IDs; in
    `ChainContextSubstFormat2`, they contain classes.
    """

    #: The backtrack sequence, in logical order starting from the glyph
    #: before the input sequence and going backwards.
    backtrack: tuple[int, ...]

    #: The input sequence after the first element. The first element is
    #: implied by the rule set that contains this rule.
    input: tuple[int, ...]

    #: The lookahead sequence, starting from the glyph after the input
    #: sequence.
    lookahead: tuple[int, ...]

    #: The lookups to apply to the input sequence.
    lookup_records: tuple[SequenceLookupRecord, ...]


def _by_coverage_index[T](coverage: Coverage | None, values: Sequence[T]) -> Iterator[tuple[int, T]]:
    """Pairs each covered glyph with the value at its coverage index.

    Glyphs whose coverage indexes are out of range are skipped.
    """
    if coverage is None:
        return
    for glyph in coverage:
        index = coverage.index(glyph)
        if index is not None and index < len(values):
            yield glyph, values[index]


@dataclasses.dataclass(frozen=True)
class SingleSubstFormat1:
    """A single substitution subtable that adds a constant to glyph IDs.
    """

    LOOKUP_TYPE: ClassVar[int] = 1
    FORMAT: ClassVar[int] = 1

    coverage: Coverage | None

    #: The number to add to each covered glyph ID, modulo 65536.
    delta_glyph_id: int

    def mapping(self) -> dict[int, int]:
        """Returns a mapping from covered glyph IDs to their
        substitutes.
        """
        if self.coverage is None:
            return {}
        return {glyph: (glyph + self.delta_glyph_id) % GLYPH_ID_MODULUS for glyph in self.coverage}


@dataclasses.dataclass(frozen=True)
class SingleSubstFormat2:
    """A single substitution subtable that lists the substitutes.
    """

    LOOKUP_TYPE: ClassVar[int] = 1
    FORMAT: ClassVar[int] = 2

    coverage: Coverage | None

    #: The substitute glyph IDs, by coverage index.
    substitutes: tuple[int, ...]

    def mapping(self) -> dict[int, int]:
        """Returns a mapping from covered glyph IDs to their
        substitutes.
        """
        return dict(_by_coverage_index(self.coverage, self.substitutes))


@dataclasses.dataclass(frozen=True)
class MultipleSubstFormat1:
    """A multiple substitution subtable.
    """

    LOOKUP_TYPE: ClassVar[int] = 2
    FORMAT: ClassVar[int] = 1

    coverage: Coverage | None

    #: The substitute glyph ID sequences, by coverage index.
    sequences: tuple[tuple[int, ...] | None, ...]

    def mapping(self) -> dict[int, tuple[int, ...]]:
        """Returns a mapping from covered glyph IDs to the sequences
        that replace them.
        """
        return {glyph: sequence for glyph, sequence in _by_coverage_index(self.coverage, self.sequences) if sequence is not None}


@dataclasses.dataclass(frozen=True)
class AlternateSubstFormat1:
    """An alternate substitution subtable.
    """

    LOOKUP_TYPE: ClassVar[int] = 3
    FORMAT: ClassVar[int] = 1

    coverage: Coverage | None

    #: The sets of alternate glyph IDs, by coverage index.
    alternate_sets: tuple[tuple[int, ...] | None, ...]

    def mapping(self) -> dict[int, tuple[int, ...]]:
        """Returns a mapping from covered glyph IDs to their
        alternates.
        """
        return {glyph: alternates for glyph, alternates in _by_coverage_index(self.coverage, self.alternate_sets) if alternates is not None}


@dataclasses.dataclass(frozen=True)
class LigatureSubstFormat1:
    """A ligature substitution subtable.
    """

    LOOKUP_TYPE: ClassVar[int] = 4
    FORMAT: ClassVar[int] = 1

    coverage: Coverage | None

    #: The ligature sets, by coverage index. The rules in a set are in
    #: order of preference.
    ligature_sets: tuple[tuple[Ligature | None, ...] | None, ...]

    def mapping(self) -> dict[tuple[int, ...], int]:
        """Returns a mapping from component glyph ID sequences to their
        ligatures.

        If two rules have the same components, the preferred one wins.
        """
        mapping: dict[tuple[int, ...], int] = {}
        for glyph, ligature_set in _by_coverage_index(self.coverage, self.ligature_sets):
            for ligature in ligature_set or ():
                if ligature is not None:
                    mapping.setdefault((glyph, *ligature.components), ligature.ligature_glyph)
        return mapping


@dataclasses.dataclass(frozen=True)
class ContextSubstFormat1:
    """A contextual substitution subtable with glyph sequences.
    """

    LOOKUP_TYPE: ClassVar[int] = 5
    FORMAT: ClassVar[int] = 1

    coverage: Coverage | None

    #: The rule sets, by coverage index of the first input glyph.
    rule_sets: tuple[tuple[SequenceRule | None, ...] | None, ...]


@dataclasses.dataclass(frozen=True)
class ContextSubstFormat2:
    """A contextual substitution subtable with class sequences.
    """

    LOOKUP_TYPE: ClassVar[int] = 5
    FORMAT: ClassVar[int] = 2

    coverage: Coverage | None

    #: The classes of the input glyphs.
    class_def: ClassDef | None

    #: The rule sets, by class of the first input glyph.
    class_sets: tuple[tuple[SequenceRule | None, ...] | None, ...]


@dataclasses.dataclass(frozen=True)
class ContextSubstFormat3:
    """A contextual substitution subtable with one coverage table per
    input position.
    """

    LOOKUP_TYPE: ClassVar[int] = 5
    FORMAT: ClassVar[int] = 3

    coverages: tuple[Coverage | None, ...]

    lookup_records: tuple[SequenceLookupRecord, ...]


@dataclasses.dataclass(frozen=True)
class ChainContextSubstFormat1:
    """A chained contextual substitution subtable with glyph sequences.
    """

    LOOKUP_TYPE: ClassVar[int] = 6
    FORMAT: ClassVar[int] = 1

    coverage: Coverage | None

    #: The rule sets, by coverage index of the first input glyph.
    chain_rule_sets: tuple[tuple[ChainedSequenceRule | None, ...] | None, ...]


@dataclasses.dataclass(frozen=True)
class ChainContextSubstFormat2:
    """A chained contextual substitution subtable with class sequences.
    """

    LOOKUP_TYPE: ClassVar[int] = 6
    FORMAT: ClassVar[int] = 2

    coverage: Coverage | None

    backtrack_class_def: ClassDef | None

    input_class_def: ClassDef | None

    lookahead_class_def: ClassDef | None

    #: The rule sets, by input class of the first input glyph.
    chain_class_sets: tuple[tuple[ChainedSequenceRule | None, ...] | None, ...]


@dataclasses.dataclass(frozen=True)
class ChainContextSubstFormat3:
    """A chained contextual substitution subtable with one coverage
    table per position.
    """

    LOOKUP_TYPE: ClassVar[int] = 6
    FORMAT: ClassVar[int] = 3

    #: The backtrack coverage tables, in the same order as
    #: `ChainedSequenceRule.backtrack`.
    backtrack_coverages: tuple[Coverage | None, ...]

    input_coverages: tuple[Coverage | None, ...]

    lookahead_coverages: tuple[Coverage | None, ...]

    lookup_records: tuple[SequenceLookupRecord, ...]


@dataclasses.dataclass(frozen=True)
class ExtensionSubstFormat1:
    """An extension subtable.

    `extension` is exactly what decoding the wrapped subtable directly
    would produce.
    """

    LOOKUP_TYPE: ClassVar[int] = EXTENSION_LOOKUP_TYPE
    FORMAT: ClassVar[int] = 1

    #: The lookup type of the wrapped subtable.
    extension_lookup_type: int

    extension: Subtable | None


@dataclasses.dataclass(frozen=True)
class ReverseChainSingleSubstFormat1:
    """A reverse chaining contextual single substitution subtable.
    """

    LOOKUP_TYPE: ClassVar[int] = 8
    FORMAT: ClassVar[int] = 1

    coverage: Coverage | None

    backtrack_coverages: tuple[Coverage | None, ...]

    lookahead_coverages: tuple[Coverage | None, ...]

    #: The substitute glyph IDs, by coverage index.
    substitutes: tuple[int, ...]

    def mapping(self) -> dict[int, int]:
        """Returns a mapping from covered glyph IDs to their
        substitutes.
        """
        return dict(_by_coverage_index(self.coverage, self.substitutes))


type Subtable = (
    SingleSubstFormat1
    | SingleSubstFormat2
    | MultipleSubstFormat1
    | AlternateSubstFormat1
    | LigatureSubstFormat1
    | ContextSubstFormat1
    | ContextSubstFormat2
    | ContextSubstFormat3
    | ChainContextSubstFormat1
    | ChainContextSubstFormat2
    | ChainContextSubstFormat3
    | ExtensionSubstFormat1
    | ReverseChainSingleSubstFormat1
)


def _parse_format(p: Parser, lookup_type: int, formats: Collection[int]) -> int:
    format_offset = p.position
    format = p.parse_uint16()
    if format not in formats:
        raise UnsupportedSubformat(format_offset, f'lookup type {lookup_type} format', formats, format)
    return format


def _parse_tail(p: Parser, glyph_count: int) -> tuple[int, ...]:
    # The count includes the element implied by the containing set.
    return p.parse_uint16_list(max(glyph_count - 1, 0))


def _parse_lookup_records(p: Parser, count: int | None = None) -> tuple[SequenceLookupRecord, ...]:
    return p.parse_record_list(SequenceLookupRecord, count)


def _parse_coverages(p: Parser, count: int | None = None) -> tuple[Coverage | None, ...]:
    return p.parse_list(Parser.pointer(parse_coverage), count)


def _parse_single_substitution(p: Parser) -> SingleSubstFormat1 | SingleSubstFormat2:
    match _parse_format(p, 1, {1, 2}):
        case SingleSubstFormat1.FORMAT:
            coverage = p.parse_pointer(parse_coverage)
            return SingleSubstFormat1(coverage, p.parse_int16())
        case _:
            coverage = p.parse_pointer(parse_coverage)
            return SingleSubstFormat2(coverage, p.parse_uint16_list())


def _parse_multiple_substitution(p: Parser) -> MultipleSubstFormat1:
    _parse_format(p, 2, {1})
    coverage = p.parse_pointer(parse_coverage)
    return MultipleSubstFormat1(coverage, p.parse_list_of_lists())


def _parse_alternate_substitution(p: Parser) -> AlternateSubstFormat1:
    _parse_format(p, 3, {1})
    coverage = p.parse_pointer(parse_coverage)
    return AlternateSubstFormat1(coverage, p.parse_list_of_lists())


def _parse_ligature(p: Parser) -> Ligature:
    ligature_glyph = p.parse_uint16()
    return Ligature(ligature_glyph, _parse_tail(p, p.parse_uint16()))


def _parse_ligature_substitution(p: Parser) -> LigatureSubstFormat1:
    _parse_format(p, 4, {1})
    coverage = p.parse_pointer(parse_coverage)
    return LigatureSubstFormat1(coverage, p.parse_list_of_lists(_parse_ligature))


def _parse_sequence_rule(p: Parser) -> SequenceRule:
    glyph_count = p.parse_uint16()
    lookup_count = p.parse_uint16()
    input_sequence = _parse_tail(p, glyph_count)
    return SequenceRule(input_sequence, _parse_lookup_records(p, lookup_count))


def _parse_context_substitution(p: Parser) -> ContextSubstFormat1 | ContextSubstFormat2 | ContextSubstFormat3:
    match _parse_format(p, 5, {1, 2, 3}):
        case ContextSubstFormat1.FORMAT:
            coverage = p.parse_pointer(parse_coverage)
            return ContextSubstFormat1(coverage, p.parse_list_of_lists(_parse_sequence_rule))
        case ContextSubstFormat2.FORMAT:
            coverage = p.parse_pointer(parse_coverage)
            class_def = p.parse_pointer(parse_class_def)
            return ContextSubstFormat2(coverage, class_def, p.parse_list_of_lists(_parse_sequence_rule))
        case _:
            glyph_count = p.parse_uint16()
            lookup_count = p.parse_uint16()
            coverages = _parse_coverages(p, glyph_count)
            return ContextSubstFormat3(coverages, _parse_lookup_records(p, lookup_count))


def _parse_chained_sequence_rule(p: Parser) -> ChainedSequenceRule:
    backtrack = p.parse_uint16_list()
    input_sequence = _parse_tail(p, p.parse_uint16())
    lookahead = p.parse_uint16_list()
    return ChainedSequenceRule(backtrack, input_sequence, lookahead, _parse_lookup_records(p))


def _parse_chaining_context_substitution(
    p: Parser,
) -> ChainContextSubstFormat1 | ChainContextSubstFormat2 | ChainContextSubstFormat3:
    match _parse_format(p, 6, {1, 2, 3}):
        case ChainContextSubstFormat1.FORMAT:
            coverage = p.parse_pointer(parse_coverage)
            return ChainContextSubstFormat1(coverage, p.parse_list_of_lists(_parse_chained_sequence_rule))
        case ChainContextSubstFormat2.FORMAT:
            coverage = p.parse_pointer(parse_coverage)
            backtrack_class_def = p.parse_pointer(parse_class_def)
            input_class_def = p.parse_pointer(parse_class_def)
            lookahead_class_def = p.parse_pointer(parse_class_def)
            return ChainContextSubstFormat2(
                coverage,
                backtrack_class_def,
                input_class_def,
                lookahead_class_def,
                p.parse_list_of_lists(_parse_chained_sequence_rule),
            )
        case _:
            backtrack_coverages = _parse_coverages(p)
            input_coverages = _parse_coverages(p)
            lookahead_coverages = _parse_coverages(p)
            return ChainContextSubstFormat3(
                backtrack_coverages,
                input_coverages,
                lookahead_coverages,
                _parse_lookup_records(p),
            )


def _parse_extension_substitution(p: Parser) -> ExtensionSubstFormat1:
    _parse_format(p, EXTENSION_LOOKUP_TYPE, {1})
    type_offset = p.position
    extension_lookup_type = p.parse_uint16()
    wrappable_lookup_types = SUBTABLE_PARSERS.keys() - {EXTENSION_LOOKUP_TYPE}
    if extension_lookup_type not in wrappable_lookup_types:
        raise UnknownLookupType(type_offset, 'extension lookup type', wrappable_lookup_types, extension_lookup_type)
    log.debug('Following extension subtable at 0x%X to lookup type %d', p.offset, extension_lookup_type)
    return ExtensionSubstFormat1(
        extension_lookup_type,
        p.parse_pointer32(lambda q: parse_subtable(q, extension_lookup_type, type_offset)),
    )


def _parse_reverse_chaining_single_substitution(p: Parser) -> ReverseChainSingleSubstFormat1:
    _parse_format(p, 8, {1})
    coverage = p.parse_pointer(parse_coverage)
    backtrack_coverages = _parse_coverages(p)
    lookahead_coverages = _parse_coverages(p)
    return ReverseChainSingleSubstFormat1(coverage, backtrack_coverages, lookahead_coverages, p.parse_uint16_list())


#: The subtable decoding functions, by lookup type. Each takes a parser
#: at the start of a subtable.
SUBTABLE_PARSERS: Final[Mapping[int, Callable[[Parser], Subtable]]] = types.MappingProxyType({
    1: _parse_single_substitution,
    2: _parse_multiple_substitution,
    3: _parse_alternate_substitution,
    4: _parse_ligature_substitution,
    5: _parse_context_substitution,
    6: _parse_chaining_context_substitution,
    EXTENSION_LOOKUP_TYPE: _parse_extension_substitution,
    8: _parse_reverse_chaining_single_substitution,
})


def parse_subtable(p: Parser, lookup_type: int, type_offset: int) -> Subtable:
    """Decodes a subtable of a given lookup type.

    Args:
        p: A parser at the start of the subtable.
        lookup_type: The lookup type.
        type_offset: The absolute offset at which `lookup_type` was
            read, for error reporting.

    Raises:
        UnknownLookupType: If `lookup_type` is not a GSUB lookup type.
        DecodeError: If the subtable is malformed.
    """
    try:
        parse = SUBTABLE_PARSERS[lookup_type]
    except KeyError:
        raise UnknownLookupType(type_offset, 'lookup type', SUBTABLE_PARSERS.keys(), lookup_type) from None
    return parse(p)
