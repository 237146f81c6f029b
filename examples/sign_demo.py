"""
Example: Signing and Verifying an Extension Bundle

This example walks through the full packaging flow:
- Generating an Ed25519 keypair for an extension
- Signing a build directory into a .xt artifact
- Verifying the artifact, with and without a trusted key
- Detecting a tampered artifact
"""

import json
import os
import sys
import tempfile
import zipfile

# Add parent directory to path so we can import xtsign
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from xtsign import (
    Packager,
    Verifier,
    generate_keypair,
    load_config,
)
from xtsign.crypto.keys import write_keypair
from xtsign.monitoring import snapshot_metrics


def make_project(root):
    dist = os.path.join(root, "dist")
    os.makedirs(dist)
    with open(os.path.join(dist, "index.html"), "w") as f:
        f.write("<h1>Hello from my extension</h1>")
    with open(os.path.join(dist, "app.js"), "w") as f:
        f.write("console.log('loaded')")
    return dist


def main():
    print("📦 Extension Signing Demo")
    print("=" * 50)

    with tempfile.TemporaryDirectory() as root:
        dist = make_project(root)
        ext_dir = os.path.join(root, "extension")

        print("\n1. Generating Ed25519 keypair...")
        keys = generate_keypair()
        write_keypair(keys, ext_dir)
        print(f"   Public key: {keys.public_key_hex[:16]}...")

        with open(os.path.join(ext_dir, "manifest.json"), "w") as f:
            json.dump({"name": "hello", "version": "0.1.0", "public_key": "", "signature": ""}, f, indent=2)

        print("\n2. Signing dist/ into an artifact...")
        result = Packager(load_config(root)).package(dist, keys.private_key_hex)
        print(f"   ✓ Artifact: {os.path.basename(result.output_path)}")
        print(f"   ✓ Content hash: {result.hash[:16]}...")
        print(f"   ✓ Signature: {result.signature[:16]}...")

        print("\n3. Verifying the artifact...")
        verifier = Verifier()
        check = verifier.verify_archive(result.output_path)
        print(f"   ✅ Embedded key: {check.status.value}")

        check = verifier.verify_archive(result.output_path, public_key=keys.public_key_hex)
        print(f"   ✅ Trusted key: {check.status.value}")

        stranger = generate_keypair()
        check = verifier.verify_archive(result.output_path, public_key=stranger.public_key_hex)
        print(f"   ❌ Unrelated key: {check.status.value}")

        print("\n4. Tampering with a file inside the artifact...")
        tampered = os.path.join(root, "tampered.xt")
        with zipfile.ZipFile(result.output_path) as src, zipfile.ZipFile(tampered, "w") as dst:
            for name in src.namelist():
                data = src.read(name)
                if name == "app.js":
                    data = b"steal_everything()"
                dst.writestr(name, data)

        check = verifier.verify_archive(tampered)
        if check.valid:
            print("   ❌ Tampering went unnoticed!")
        else:
            print(f"   ✅ Tampering detected: {check.status.value}")

        with open(os.path.join(ext_dir, "manifest.json")) as f:
            untouched = json.load(f)["signature"] == ""
        print(f"\n5. Developer manifest left untouched: {untouched}")

    print("\n6. Signing Metrics:")
    for name, value in snapshot_metrics().items():
        print(f"   {name}: {value}")

    print("\n🎉 Signing demo completed successfully!")


if __name__ == "__main__":
    main()
