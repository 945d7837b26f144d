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

"""Dumps a GSUB table, or one GSUB subtable, as JSON.
"""


from __future__ import annotations


import argparse
import json
import logging
import sys
from typing import TYPE_CHECKING

from fontTools import configLogger
from fontTools.ttLib import TTFont

from gsub_decoder.errors import DecodeError
from gsub_decoder.serialize import to_json_data
from gsub_decoder.table import decode_subtable
from gsub_decoder.table import parse_gsub


if TYPE_CHECKING:
    from collections.abc import Sequence


log = logging.getLogger(__name__)


_LOG_LEVELS = [
    logging.ERROR,
    logging.WARNING,
    logging.INFO,
    logging.DEBUG,
]


def read_gsub_data(path: str, font_number: int = -1) -> bytes | None:
    """Reads the raw bytes of a font’s GSUB table.

    Args:
        path: The path to a font file.
        font_number: The index of the font in a font collection, or -1
            if the file is not a collection.

    Returns:
        The table’s bytes, or ``None`` if the font has no GSUB table.
    """
    with TTFont(path, fontNumber=font_number, lazy=True) as tt_font:
        if 'GSUB' not in tt_font:
            return None
        log.info('Reading GSUB from %s', path)
        return tt_font.reader['GSUB']


def _parse_offset(s: str) -> int:
    offset = int(s)
    if offset < 0:
        raise argparse.ArgumentTypeError(f'negative offset: {offset}')
    return offset


def _parse_hex(s: str) -> bytes:
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f'invalid hex: {e}') from e


def main(args: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Dump a GSUB table as JSON.')
    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument('font', nargs='?', help='The path to a font.')
    input_group.add_argument('--hex', type=_parse_hex, help='The bytes to decode, in hexadecimal, instead of a font.')
    parser.add_argument('--font-number', default=-1, type=int, help='The index of the font in a font collection.')
    parser.add_argument('--offset', default=0, type=_parse_offset, help='The offset at which to start decoding (default: %(default)s).')
    parser.add_argument(
        '--lookup-type',
        type=int,
        help='Decode a single subtable of this lookup type instead of a whole table.',
    )
    output_group = parser.add_mutually_exclusive_group()
    output_group.add_argument('--indent', default=2, type=int, help='The JSON indentation (default: %(default)s).')
    output_group.add_argument('--compact', action='store_true', help='Print the JSON on one line.')
    parser.add_argument('-v', '--verbose', action='count', default=0, help='Log more; may be repeated.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only log errors.')
    options = parser.parse_args(args)

    configLogger(
        logger=logging.getLogger(),
        level=_LOG_LEVELS[0 if options.quiet else min(1 + options.verbose, len(_LOG_LEVELS) - 1)],
    )

    if options.hex is not None:
        data = options.hex
    else:
        data = read_gsub_data(options.font, options.font_number)
        if data is None:
            parser.error(f'{options.font} has no GSUB table')

    try:
        if options.lookup_type is None:
            result = to_json_data(parse_gsub(data, options.offset))
        else:
            result = to_json_data(decode_subtable(data, options.lookup_type, options.offset))
    except DecodeError as e:
        log.error('%s', e)
        return 1

    if options.compact:
        print(json.dumps(result, separators=(',', ':')))
    else:
        print(json.dumps(result, indent=options.indent))
    return 0


if __name__ == '__main__':
    sys.exit(main())
