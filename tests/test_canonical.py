import copy
import json

from xtsign.manifest import (
    canonicalize,
    dumps,
    placeholder_manifest_bytes,
    with_placeholder_signature,
    with_signature,
)


def nested_doc():
    return {
        "version": "1.0.0",
        "name": "demo",
        "permissions": {"http": [{"target": "*", "action": "GET"}], "database": []},
        "dependencies": [
            {
                "name": "contacts",
                "identity": "ab" * 32,
                "tables": [{"reason": "list", "table": "people", "operations": ["read"]}],
                "minVersion": "0.2.0",
            }
        ],
        "signature": "",
        "public_key": "",
    }


def reordered(doc):
    """Rebuild every dict with reversed key insertion order."""
    if isinstance(doc, dict):
        return {k: reordered(doc[k]) for k in reversed(list(doc))}
    if isinstance(doc, list):
        return [reordered(x) for x in doc]
    return doc


class TestCanonicalize:

    def test_keys_sorted_at_every_level(self):
        c = canonicalize(nested_doc())
        assert list(c) == sorted(c)
        assert list(c["permissions"]) == ["database", "http"]
        assert list(c["permissions"]["http"][0]) == ["action", "target"]
        dep = c["dependencies"][0]
        assert list(dep) == ["identity", "minVersion", "name", "tables"]
        assert list(dep["tables"][0]) == ["operations", "reason", "table"]

    def test_array_order_preserved(self):
        doc = {"list": [3, 1, {"b": 1, "a": 2}, "z", "a"]}
        assert canonicalize(doc) == {"list": [3, 1, {"a": 2, "b": 1}, "z", "a"]}
        assert canonicalize(doc)["list"][:2] == [3, 1]

    def test_idempotent(self):
        once = canonicalize(nested_doc())
        twice = canonicalize(once)
        assert twice == once
        assert dumps(twice) == dumps(once)

    def test_insertion_order_independent(self):
        assert dumps(canonicalize(nested_doc())) == dumps(canonicalize(reordered(nested_doc())))

    def test_input_not_mutated(self):
        doc = nested_doc()
        snapshot = copy.deepcopy(doc)
        canonicalize(doc)
        assert json.dumps(doc) == json.dumps(snapshot)

    def test_scalars(self):
        assert canonicalize(None) is None
        assert canonicalize(1.5) == 1.5
        assert canonicalize("s") == "s"


class TestPlaceholder:

    def test_placeholder_fields(self):
        doc = nested_doc()
        doc["signature"] = "ff" * 64
        p = with_placeholder_signature(doc, "aa" * 32)
        assert p["signature"] == ""
        assert p["public_key"] == "aa" * 32
        assert doc["signature"] == "ff" * 64

    def test_placeholder_bytes_ignore_existing_signature(self):
        signed = with_signature(nested_doc(), "aa" * 32, "ff" * 64)
        assert placeholder_manifest_bytes(signed, "aa" * 32) == placeholder_manifest_bytes(nested_doc(), "aa" * 32)

    def test_placeholder_bytes_order_independent(self):
        a = placeholder_manifest_bytes(nested_doc(), "aa" * 32)
        b = placeholder_manifest_bytes(reordered(nested_doc()), "aa" * 32)
        assert a == b

    def test_dumps_format(self):
        out = dumps({"a": 1, "name": "ünï"})
        assert out == '{\n  "a": 1,\n  "name": "ünï"\n}'.encode("utf-8")
