# aasdiscovery/links.py
"""
Asset link data model.

An asset link is a (name, value) descriptor such as serialNumber=SN-1234.
Each AAS id owns a set of them; duplicates submitted together collapse
to a single entry.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List

from .errors import InvalidInputError

_PERCENT_ESCAPE_RE = re.compile(r"%[0-9A-Fa-f]{2}")
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/_-]+={0,2}$")
# Shorter tokens are too likely to be plain words or codes
_BASE64_MIN_LENGTH = 8


@dataclass(frozen=True, order=True)
class NameValue:
    """A single asset link. Ordered by (name, value)."""
    name: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NameValue":
        return cls(name=data["name"], value=data["value"])


@dataclass(frozen=True)
class AssetLinkRecord:
    """The current asset link set of one AAS id."""
    aas_id: str
    pairs: FrozenSet[NameValue]

    def sorted_pairs(self) -> List[NameValue]:
        return sorted(self.pairs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aas_id": self.aas_id,
            "pairs": [p.to_dict() for p in self.sorted_pairs()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetLinkRecord":
        return cls(
            aas_id=data["aas_id"],
            pairs=frozenset(NameValue.from_dict(p) for p in data["pairs"]),
        )


def validate_aas_id(aas_id: str) -> str:
    """Return aas_id unchanged, or raise InvalidInputError if it is unusable."""
    if not isinstance(aas_id, str) or not aas_id:
        raise InvalidInputError("AAS id must be a non-empty string")
    return aas_id


def normalize_pairs(pairs: Iterable[NameValue]) -> FrozenSet[NameValue]:
    """
    Validate asset links and collapse duplicates.

    Raises:
        InvalidInputError: if any name or value is empty or not a string
    """
    result = set()
    for pair in pairs:
        if not isinstance(pair, NameValue):
            raise InvalidInputError(f"Expected NameValue, got {type(pair).__name__}")
        if not isinstance(pair.name, str) or not pair.name:
            raise InvalidInputError("Asset link name must be a non-empty string")
        if not isinstance(pair.value, str) or not pair.value:
            raise InvalidInputError(
                f"Asset link value for '{pair.name}' must be a non-empty string"
            )
        result.add(pair)
    return frozenset(result)


def parse_pairs(payload: Any) -> List[NameValue]:
    """
    Parse a decoded JSON payload into asset links.

    The payload must be a list of objects with exactly the string keys
    "name" and "value". Anything else is rejected before it reaches the
    store.
    """
    if not isinstance(payload, list):
        raise InvalidInputError("Asset links must be a JSON array")

    pairs = []
    for i, item in enumerate(payload):
        if not isinstance(item, dict):
            raise InvalidInputError(f"Asset link #{i} must be a JSON object")
        keys = set(item.keys())
        if keys != {"name", "value"}:
            missing = sorted({"name", "value"} - keys)
            unknown = sorted(keys - {"name", "value"})
            raise InvalidInputError(
                f"Asset link #{i} is malformed (missing={missing}, unknown={unknown})"
            )
        name, value = item["name"], item["value"]
        if not isinstance(name, str) or not isinstance(value, str):
            raise InvalidInputError(f"Asset link #{i} name and value must be strings")
        pairs.append(NameValue(name=name, value=value))

    normalize_pairs(pairs)
    return pairs


def parse_link_arg(text: str) -> NameValue:
    """Parse a command-line link of the form name=value."""
    if "=" not in text:
        raise InvalidInputError(f"Invalid link format: {text}. Expected name=value")
    name, value = text.split("=", 1)
    return NameValue(name=name, value=value)


def looks_encoded(text: str) -> bool:
    """
    True if text carries a percent-escape or is a base64 token that
    decodes to printable text, e.g. "encoded%20name" or "YmFkLXZhbHVl".
    """
    if _PERCENT_ESCAPE_RE.search(text):
        return True
    if len(text) < _BASE64_MIN_LENGTH or len(text) % 4 or not _BASE64_RE.match(text):
        return False
    try:
        decoded = base64.b64decode(
            text.replace("-", "+").replace("_", "/"), validate=True
        ).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return False
    return decoded.isprintable()


def reject_encoded_pairs(pairs: Iterable[NameValue]) -> None:
    """
    Raise InvalidInputError if a search pair was sent pre-encoded.

    Search criteria travel as plain JSON strings; an escaped or base64
    name or value never matches what register stored.
    """
    for pair in pairs:
        for field, text in (("name", pair.name), ("value", pair.value)):
            if looks_encoded(text):
                raise InvalidInputError(
                    f"Asset link {field} {text!r} looks encoded; send it as plain text"
                )
