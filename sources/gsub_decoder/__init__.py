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


"""A decoder for OpenType GSUB tables.

`parse_gsub` decodes a whole table into a `Gsub`. `decode_subtable`
decodes one subtable on its own. Both raise a `DecodeError` if the input
is malformed.
"""


__all__ = [
    'DecodeError',
    'Gsub',
    'decode_subtable',
    'parse_gsub',
]


from gsub_decoder.errors import DecodeError
from gsub_decoder.table import Gsub
from gsub_decoder.table import decode_subtable
from gsub_decoder.table import parse_gsub
