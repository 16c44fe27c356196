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

# Pure helpers that shape user supplied profile fields before they are
# written to the identity provider or the profile document.

import logging
import math
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Optional

from google.cloud.firestore_v1 import DELETE_FIELD

from shared.constants import INVALID_MARKER, PERMISSIONS_FIELD
from shared.types import Dob, DobState

logger = logging.getLogger(__name__)

# Placeholder for a custom field value that was never supplied.
MISSING = object()

_EMAIL_PATTERN = re.compile(
    r"(?=.{1,254}\Z)(?=.{1,64}@)"
    r"[-!#$%&'*+/0-9=?A-Z^_`a-z{|}~]+(\.[-!#$%&'*+/0-9=?A-Z^_`a-z{|}~]+)*"
    r"@[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*"
)

# Firestore stores integers as signed 64-bit values.
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_DATE_FORMATS = ("%Y/%m/%d", "%Y/%m/%d %H:%M:%S", "%m/%d/%Y")

CUSTOM_FIELD_KEYS = ("key", "value", "type")


def split_display_name(name: Optional[str]) -> Dict[str, str]:
    """
    Splits a display name into first and last name.

    The last whitespace separated token is the last name and everything
    before it is the first name. A name without spaces is all first name.
    """
    if not name:
        return {"firstName": "", "lastName": ""}
    if not re.search(r"\s", name):
        return {"firstName": name, "lastName": ""}

    tokens = name.split()
    if len(tokens) < 2:
        return {"firstName": tokens[0] if tokens else "", "lastName": ""}
    return {"firstName": " ".join(tokens[:-1]), "lastName": tokens[-1]}


def normalize_phone(value: Any) -> str:
    """
    Normalizes a North American phone number to `+1XXXXXXXXXX`.

    Returns an empty string when the input does not hold exactly ten digits
    (eleven with a leading 1).
    """
    if not value:
        return ""

    digits = re.sub(r"\D", "", str(value))
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) != 10:
        return ""
    return f"+1{digits}"


def is_valid_email(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return _EMAIL_PATTERN.fullmatch(value) is not None


def sanitize_photo_url(value: Any) -> Optional[str]:
    """Returns the URL when its scheme is http or https, otherwise None."""
    if not value:
        return None
    url = str(value)
    if url.lower().startswith(("http:", "https:")):
        return url
    return None


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parses a date supplied by a client into a timezone aware datetime.

    Accepts datetime and date objects, ISO 8601 strings (a trailing `Z` is
    read as UTC) and slash separated dates. Naive values are taken as UTC.
    Returns None for anything else.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = _parse_date_string(value.strip())
        if parsed is None:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_date_string(text: str) -> Optional[datetime]:
    if not text:
        return None
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for date_format in _DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format)
        except ValueError:
            continue
    return None


def parse_dob(value: Any) -> Dob:
    if not value:
        return Dob(DobState.UNSET)
    parsed = parse_date(value)
    if parsed is None:
        return Dob(DobState.INVALID)
    return Dob(DobState.SET, parsed)


def dob_to_field(dob: Dob) -> Optional[datetime]:
    """Value written to the profile document for a parsed date of birth."""
    if dob.state == DobState.SET:
        return dob.value
    return None


def _display(value: Any) -> str:
    """Renders a value inside an error marker."""
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_number(value: Any) -> Optional[int | float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return _fit_integer(value)
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return 0
    if "_" in text:
        return None
    try:
        return _fit_integer(int(text))
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return None if math.isnan(number) else number


def _fit_integer(number: int) -> int | float:
    """Integers outside the 64-bit range are stored as floats."""
    if _INT64_MIN <= number <= _INT64_MAX:
        return number
    try:
        return float(number)
    except OverflowError:
        return math.inf if number > 0 else -math.inf


def coerce_custom_field(key: str, value: Any, declared_type: Any) -> Any:
    """
    Coerces a custom profile field to its declared type.

    Values that cannot be coerced are replaced by an `[INVALID] ...` marker
    string instead of raising, so the other fields of the same merge write
    are still stored.
    """
    if declared_type == "string":
        if value is MISSING:
            return "undefined"
        if value is None:
            return "null"
        if isinstance(value, bool):
            return _display(value)
        return str(value)

    if declared_type == "number":
        number = _to_number(value)
        if number is not None:
            return number
        return _invalid(key, f"{_display(value)} is not a number")

    if declared_type == "boolean":
        if isinstance(value, (list, dict)):
            return True
        return value is not MISSING and bool(value)

    if declared_type == "timestamp":
        parsed = parse_date(value) if value and value is not MISSING else None
        if parsed is not None:
            return parsed
        return _invalid(key, f"{_display(value)} is not a timestamp")

    if declared_type is None or declared_type == "null":
        return None

    if declared_type == "delete":
        return DELETE_FIELD

    return _invalid(
        key,
        f"Type {_display(declared_type)} is not supported for value {_display(value)}",
    )


def _invalid(key: str, reason: str) -> str:
    logger.warning("Custom field %s was not coerced: %s", key, reason)
    return f"{INVALID_MARKER} {reason}"


def process_custom_data(entries: Iterable[Any]) -> Dict[str, Any]:
    """
    Coerces a list of `{key, value, type}` entries into a merge write payload.

    Entries missing any of the three keys are skipped, as is the reserved
    permissions field.
    """
    result: Dict[str, Any] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if not all(name in entry for name in CUSTOM_FIELD_KEYS):
            continue

        key = entry["key"]
        if not isinstance(key, str) or not key:
            continue
        if key == PERMISSIONS_FIELD:
            logger.warning("Ignoring attempt to set %s as custom data", key)
            continue

        result[key] = coerce_custom_field(key, entry["value"], entry["type"])
    return result
