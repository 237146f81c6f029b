"""Canonical form of the extension manifest."""

import copy
import json
from typing import Any, Dict


def canonicalize(doc: Any) -> Any:
    """Return a copy with object keys sorted at every nesting level.

    Lists keep their element order; objects nested inside lists are sorted
    too. Scalars are returned as-is. The input is never mutated.
    """
    if isinstance(doc, dict):
        return {key: canonicalize(doc[key]) for key in sorted(doc)}
    if isinstance(doc, (list, tuple)):
        return [canonicalize(item) for item in doc]
    return doc


def with_placeholder_signature(doc: Dict[str, Any], public_key_hex: str) -> Dict[str, Any]:
    """Copy of doc carrying the given public key and an empty signature."""
    out = copy.deepcopy(doc)
    out["public_key"] = public_key_hex
    out["signature"] = ""
    return out


def with_signature(doc: Dict[str, Any], public_key_hex: str, signature_hex: str) -> Dict[str, Any]:
    """Copy of doc carrying the real public key and signature."""
    out = copy.deepcopy(doc)
    out["public_key"] = public_key_hex
    out["signature"] = signature_hex
    return out


def dumps(doc: Any) -> bytes:
    """Serialize a manifest exactly as it is written to disk and hashed."""
    return json.dumps(doc, indent=2, ensure_ascii=False).encode("utf-8")


def placeholder_manifest_bytes(doc: Dict[str, Any], public_key_hex: str) -> bytes:
    """The byte form of the manifest that the content hash covers."""
    return dumps(canonicalize(with_placeholder_signature(doc, public_key_hex)))


__all__ = [
    "canonicalize",
    "with_placeholder_signature",
    "with_signature",
    "dumps",
    "placeholder_manifest_bytes",
]
