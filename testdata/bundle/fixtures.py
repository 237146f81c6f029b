"""
Deterministic signing fixtures for the extension bundle format.

This script packages a fixed bundle with a fixed Ed25519 seed and records the
placeholder manifest, content hash and signature, so other implementations of
the format can check they hash and sign the same bytes.
"""

import json
import os
import sys
import tempfile
import time

# Add parent directories to path so we can import xtsign
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from xtsign.config import load_config
from xtsign.crypto import derive_public_key
from xtsign.manifest import placeholder_manifest_bytes
from xtsign.monitoring import MetricsRegistry
from xtsign.signing import Packager, Verifier

FIXTURE_SEED = bytes(range(32))

FIXTURE_MANIFEST = {
    "name": "fixture-extension",
    "version": "1.2.3",
    "public_key": "",
    "signature": "",
    "permissions": {"database": [{"target": "notes", "access": "read"}]},
    "dependencies": [
        {
            "identity": "ab" * 32,
            "name": "contacts",
            "minVersion": "0.2.0",
            "tables": [{"table": "people", "operations": ["read"], "reason": "lookup"}],
        }
    ],
}

FIXTURE_FILES = {
    "index.html": b"<!doctype html><title>fixture</title>",
    "assets/app.js": b"console.log('fixture')\n",
    "assets/style.css": b"body{margin:0}",
}


def build_project(root: str) -> str:
    """Lay out dist/ and extension/ under root; returns the bundle path."""
    dist = os.path.join(root, "dist")
    for rel, data in FIXTURE_FILES.items():
        path = os.path.join(dist, *rel.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)

    ext = os.path.join(root, "extension")
    os.makedirs(ext, exist_ok=True)
    with open(os.path.join(ext, "manifest.json"), "w", encoding="utf-8") as f:
        json.dump(FIXTURE_MANIFEST, f, indent=2)
    return dist


def main():
    """Generate fixtures next to this script."""
    out_dir = os.path.dirname(os.path.abspath(__file__))
    public_key_hex = derive_public_key(FIXTURE_SEED).hex()
    placeholder = placeholder_manifest_bytes(FIXTURE_MANIFEST, public_key_hex)

    with tempfile.TemporaryDirectory() as tmp:
        bundle = build_project(tmp)
        metrics = MetricsRegistry()
        result = Packager(load_config(tmp), metrics=metrics).package(
            bundle, FIXTURE_SEED, output_path=os.path.join(tmp, "fixture.xt")
        )
        verified = Verifier(metrics=metrics).verify_archive(result.output_path)

    placeholder_file = os.path.join(out_dir, "placeholder_manifest.json")
    with open(placeholder_file, "wb") as f:
        f.write(placeholder)

    summary = {
        "seed_hex": FIXTURE_SEED.hex(),
        "public_key": result.public_key,
        "content_hash": result.hash,
        "signature": result.signature,
        "files": sorted(FIXTURE_FILES),
        "placeholder_manifest_length": len(placeholder),
        "verified": verified.valid,
        "generated_at": int(time.time()),
        "python_version": sys.version.split()[0],
    }

    summary_file = os.path.join(out_dir, "summary.json")
    with open(summary_file, "w") as f:
        json.dump(summary, f, indent=2, sort_keys=True)

    print("✅ Generated bundle fixtures:")
    print(f"   📄 Placeholder manifest: {placeholder_file}")
    print(f"   📊 Summary: {summary_file}")
    print(f"   🔑 Public key: {result.public_key}")
    print(f"   🎯 Content hash: {result.hash}")
    print(f"   ✍️  Signature: {result.signature[:32]}...")


if __name__ == "__main__":
    main()
