import json

import pytest

from xtsign.config import ENV_EXTENSION_DIR, ENV_PRIVATE_KEY_PATH, load_config
from xtsign.crypto.keys import generate_keypair, write_keypair
from xtsign.monitoring.metrics import MetricsRegistry
from xtsign.signing.packager import Packager

DEMO_MANIFEST = {"name": "demo", "version": "1.0.0", "public_key": "", "signature": ""}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv(ENV_EXTENSION_DIR, raising=False)
    monkeypatch.delenv(ENV_PRIVATE_KEY_PATH, raising=False)


@pytest.fixture
def keypair():
    return generate_keypair()


@pytest.fixture
def demo_project(tmp_path, keypair):
    """Project with dist/{index.html, style.css} and extension/{manifest.json, public.key, private.key}."""
    root = tmp_path / "project"
    dist = root / "dist"
    dist.mkdir(parents=True)
    (dist / "index.html").write_bytes(b"hi")
    (dist / "style.css").write_bytes(b"body{}")
    write_keypair(keypair, root / "extension")
    (root / "extension" / "manifest.json").write_text(json.dumps(DEMO_MANIFEST, indent=2), encoding="utf-8")
    return root


@pytest.fixture
def metrics():
    return MetricsRegistry()


@pytest.fixture
def packager(demo_project, metrics):
    return Packager(load_config(demo_project), metrics=metrics)


@pytest.fixture
def staging_tmp(tmp_path, monkeypatch):
    """Route tempfile into a private directory so leftovers can be inspected."""
    import tempfile

    tmp = tmp_path / "tmp"
    tmp.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(tmp))
    return tmp
