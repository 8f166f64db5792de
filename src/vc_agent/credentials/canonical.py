"""Deterministic encodings of credential bodies for signing.

Two encodings are produced here:

``canonical_json``
    UTF-8 JSON with sorted keys and compact separators. Used by the
    ``JsonWebSignature2020`` digest.
``typed_data``
    An EIP-712 typed-data document whose ``types`` are derived from the
    body's shape. Used by ``EthereumEip712Signature2021``.

Both are pure functions of their input: the same body always yields the
same bytes, and nothing here signs or touches keys.

EIP-712 type derivation
-----------------------
- Each JSON object becomes a struct. The top level is
  ``VerifiableCredential``; a nested object is named after its member in
  PascalCase (``credentialSubject`` -> ``CredentialSubject``).
- Fields are listed in sorted order. A leading ``@`` is dropped
  (``@context`` -> ``context``); any other name must be an identifier.
- ``str`` -> ``string``, ``bool`` -> ``bool``, ``int`` -> ``int256``,
  lists -> ``<element type>[]`` (an empty list is ``string[]``).
- ``None``, floats, mixed-type lists and empty objects cannot be
  expressed and raise :class:`~vc_agent.errors.UnsupportedFormat`.
"""
from __future__ import annotations

import json
import re
from typing import Any

from vc_agent.errors import UnsupportedFormat

PRIMARY_TYPE: str = "VerifiableCredential"
DOMAIN_NAME: str = "VerifiableCredential"
DOMAIN_VERSION: str = "1"

DOMAIN_TYPE: list[dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_INT256_MIN = -(2**255)
_INT256_MAX = 2**255 - 1


def canonical_json(value: Any) -> bytes:
    """Return the canonical UTF-8 JSON encoding of *value*."""
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def eip712_domain(chain_id: int) -> dict[str, Any]:
    return {"name": DOMAIN_NAME, "version": DOMAIN_VERSION, "chainId": chain_id}


def typed_data(message: dict[str, Any], domain: dict[str, Any]) -> dict[str, Any]:
    """Build the full EIP-712 document for *message* under *domain*.

    Raises
    ------
    UnsupportedFormat
        If the message contains values EIP-712 cannot express.
    """
    types: dict[str, list[dict[str, str]]] = {}
    encoded = _struct(PRIMARY_TYPE, message, types, path="$")
    return {
        "types": {"EIP712Domain": list(DOMAIN_TYPE), **types},
        "primaryType": PRIMARY_TYPE,
        "domain": dict(domain),
        "message": encoded,
    }


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------


def _field_name(key: str, path: str) -> str:
    name = key[1:] if key.startswith("@") else key
    if not _IDENTIFIER.match(name):
        raise UnsupportedFormat(f"Member {key!r} at {path} is not expressible in EIP-712.")
    return name


def _struct_name(key: str) -> str:
    name = key.lstrip("@")
    return name[:1].upper() + name[1:]


def _struct(
    name: str,
    value: dict[str, Any],
    types: dict[str, list[dict[str, str]]],
    path: str,
) -> dict[str, Any]:
    if not value:
        raise UnsupportedFormat(f"Empty object at {path} is not expressible in EIP-712.")

    fields: list[dict[str, str]] = []
    encoded: dict[str, Any] = {}
    for key in sorted(value):
        field_name = _field_name(key, path)
        if field_name in encoded:
            raise UnsupportedFormat(f"Members at {path} collide on field name {field_name!r}.")
        field_type, field_value = _encode(value[key], _struct_name(key), types, f"{path}.{key}")
        fields.append({"name": field_name, "type": field_type})
        encoded[field_name] = field_value

    existing = types.get(name)
    if existing is not None and existing != fields:
        raise UnsupportedFormat(f"Object at {path} conflicts with another {name!r} shape.")
    types[name] = fields
    return encoded


def _encode(
    value: Any,
    struct_name: str,
    types: dict[str, list[dict[str, str]]],
    path: str,
) -> tuple[str, Any]:
    if isinstance(value, bool):
        return "bool", value
    if isinstance(value, int):
        if not _INT256_MIN <= value <= _INT256_MAX:
            raise UnsupportedFormat(f"Integer at {path} does not fit in int256.")
        return "int256", value
    if isinstance(value, str):
        return "string", value
    if isinstance(value, dict):
        return struct_name, _struct(struct_name, value, types, path)
    if isinstance(value, list):
        if not value:
            return "string[]", []
        element_types: set[str] = set()
        items: list[Any] = []
        for index, item in enumerate(value):
            item_type, item_value = _encode(item, struct_name, types, f"{path}[{index}]")
            element_types.add(item_type)
            items.append(item_value)
        if len(element_types) != 1:
            raise UnsupportedFormat(f"List at {path} mixes element types {sorted(element_types)}.")
        return f"{element_types.pop()}[]", items
    raise UnsupportedFormat(
        f"Value of type {type(value).__name__} at {path} is not expressible in EIP-712."
    )


__all__ = [
    "DOMAIN_NAME",
    "DOMAIN_VERSION",
    "PRIMARY_TYPE",
    "canonical_json",
    "eip712_domain",
    "typed_data",
]
