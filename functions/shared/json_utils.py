# Copyright 2025 Google LLC
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
# ==============================================================================

import re
from typing import Any, Literal

Direction = Literal["snake_to_camel", "camel_to_snake"]


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def convert_keys(data: Any, direction: Direction, recursive: bool = True) -> Any:
    """
    Converts dictionary keys between snake_case and camelCase.

    By default lists and nested dicts are walked so their keys are converted
    as well. With `recursive=False` only the top-level keys change, which keeps
    user-supplied maps (such as custom object metadata) intact. Keys that are
    not strings are kept as they are.
    """
    convert = snake_to_camel if direction == "snake_to_camel" else camel_to_snake
    if isinstance(data, dict):
        return {
            (convert(key) if isinstance(key, str) else key): (
                convert_keys(value, direction) if recursive else value
            )
            for key, value in data.items()
        }
    if isinstance(data, list) and recursive:
        return [convert_keys(item, direction) for item in data]
    return data
