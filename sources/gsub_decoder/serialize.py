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

"""Conversion of decoded values to JSON data.
"""


from __future__ import annotations


__all__ = [
    'JsonData',
    'to_json_data',
]


import dataclasses
import enum


type JsonData = None | bool | int | float | str | list[JsonData] | dict[str, JsonData]


def to_json_data(value: object) -> JsonData:
    """Converts a decoded value to something `json.dumps` accepts.

    A dataclass becomes an object whose first key is ``'format'``, if
    the class has a format, followed by its fields. A named tuple
    becomes an object of its fields. Other tuples become arrays. Flags
    become integers. Tags are strings already.

    Args:
        value: A value returned by one of this package’s decoding
            functions, or any part of one.

    Raises:
        TypeError: If `value` contains something that no decoding
            function returns.
    """
    match value:
        case None | bool() | str():
            return value
        case enum.IntFlag():
            return int(value)
        case int():
            return value
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            data: dict[str, JsonData] = {}
            if (format := getattr(value, 'FORMAT', None)) is not None:
                data['format'] = format
            for field in dataclasses.fields(value):
                data[field.name] = to_json_data(getattr(value, field.name))
            return data
        case tuple() if hasattr(value, '_fields'):
            return {name: to_json_data(item) for name, item in zip(value._fields, value)}
        case tuple() | list():
            return [to_json_data(item) for item in value]
        case _:
            raise TypeError(f'Cannot convert to JSON data: {value!r}')
