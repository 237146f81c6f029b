import json
import zipfile

import pytest

from xtsign.archive import extract_archive
from xtsign.crypto.keys import generate_keypair, read_private_key_file
from xtsign.errors import ArtifactFormatError
from xtsign.signing import VerificationStatus, Verifier


@pytest.fixture
def artifact(demo_project, packager):
    key = read_private_key_file(demo_project / "extension" / "private.key")
    return packager.package(demo_project / "dist", key)


@pytest.fixture
def verifier(metrics):
    return Verifier(metrics=metrics)


@pytest.fixture
def extracted(artifact, tmp_path):
    dest = tmp_path / "extracted"
    extract_archive(artifact.output_path, dest)
    return dest


def test_round_trip(artifact, verifier):
    result = verifier.verify_archive(artifact.output_path)
    assert result.status == VerificationStatus.VALID
    assert result.valid
    assert result.hash == artifact.hash
    assert result.public_key == artifact.public_key
    assert result.manifest["name"] == "demo"


def test_round_trip_directory(extracted, artifact, verifier):
    assert verifier.verify_directory(extracted).valid


def test_trusted_key(artifact, verifier, keypair):
    assert verifier.verify_archive(artifact.output_path, public_key=keypair.public_key_hex).valid


def test_different_trusted_key(artifact, verifier):
    other = generate_keypair()
    result = verifier.verify_archive(artifact.output_path, public_key=other.public_key_hex)
    assert result.status == VerificationStatus.SIGNATURE_INVALID


def test_modified_file(extracted, verifier):
    (extracted / "style.css").write_bytes(b"body{color:red}")
    result = verifier.verify_directory(extracted)
    assert result.status == VerificationStatus.SIGNATURE_INVALID
    assert not result.valid


def test_added_file(extracted, verifier):
    (extracted / "extra.js").write_text("alert(1)")
    assert verifier.verify_directory(extracted).status == VerificationStatus.SIGNATURE_INVALID


def test_added_backup_file(extracted, verifier):
    (extracted / "extension" / "old.bak").write_text("x")
    assert verifier.verify_directory(extracted).status == VerificationStatus.SIGNATURE_INVALID


def test_removed_file(extracted, verifier):
    (extracted / "index.html").unlink()
    assert verifier.verify_directory(extracted).status == VerificationStatus.SIGNATURE_INVALID


def test_swapped_embedded_key(extracted, verifier):
    manifest_path = extracted / "extension" / "manifest.json"
    doc = json.loads(manifest_path.read_text())
    doc["public_key"] = generate_keypair().public_key_hex
    manifest_path.write_text(json.dumps(doc))
    assert verifier.verify_directory(extracted).status == VerificationStatus.SIGNATURE_INVALID


def test_manifest_key_order_irrelevant(extracted, verifier):
    manifest_path = extracted / "extension" / "manifest.json"
    doc = json.loads(manifest_path.read_text())
    manifest_path.write_text(json.dumps(dict(reversed(list(doc.items())))))
    assert verifier.verify_directory(extracted).valid


def test_expected_hash(artifact, verifier):
    assert verifier.verify_archive(artifact.output_path, expected_hash=artifact.hash.upper()).valid
    result = verifier.verify_archive(artifact.output_path, expected_hash="00" * 32)
    assert result.status == VerificationStatus.HASH_MISMATCH


def test_metrics_record_outcomes(artifact, verifier, metrics):
    verifier.verify_archive(artifact.output_path)
    verifier.verify_archive(artifact.output_path, public_key=generate_keypair().public_key_hex)
    assert metrics.snapshot()["verifications_total"] == 2
    assert metrics.registry.get_sample_value(
        "xtsign_verifications_total", {"status": "signature_invalid"}
    ) == 1.0


class TestMalformedArtifacts:

    def test_unsigned_manifest(self, tmp_path, verifier):
        ext = tmp_path / "a" / "extension"
        ext.mkdir(parents=True)
        (ext / "manifest.json").write_text(json.dumps({"name": "demo", "version": "1.0.0", "signature": ""}))
        with pytest.raises(ArtifactFormatError, match="no signature"):
            verifier.verify_directory(tmp_path / "a")

    def test_signature_not_hex(self, extracted, verifier):
        manifest_path = extracted / "extension" / "manifest.json"
        doc = json.loads(manifest_path.read_text())
        doc["signature"] = "zz" * 64
        manifest_path.write_text(json.dumps(doc))
        with pytest.raises(ArtifactFormatError):
            verifier.verify_directory(extracted)

    def test_signature_wrong_length(self, extracted, verifier):
        manifest_path = extracted / "extension" / "manifest.json"
        doc = json.loads(manifest_path.read_text())
        doc["signature"] = doc["signature"][:64]
        manifest_path.write_text(json.dumps(doc))
        with pytest.raises(ArtifactFormatError, match="64 bytes"):
            verifier.verify_directory(extracted)

    def test_malformed_public_key(self, extracted, verifier):
        manifest_path = extracted / "extension" / "manifest.json"
        doc = json.loads(manifest_path.read_text())
        doc["public_key"] = "abc"
        manifest_path.write_text(json.dumps(doc))
        with pytest.raises(ArtifactFormatError, match="public key"):
            verifier.verify_directory(extracted)

    def test_not_a_zip(self, tmp_path, verifier):
        bogus = tmp_path / "bogus.xt"
        bogus.write_bytes(b"definitely not a zip")
        with pytest.raises(ArtifactFormatError):
            verifier.verify_archive(bogus)

    def test_path_traversal_rejected(self, tmp_path, verifier):
        evil = tmp_path / "evil.xt"
        with zipfile.ZipFile(evil, "w") as z:
            z.writestr("../escape.txt", "boom")
        with pytest.raises(ArtifactFormatError, match="unsafe path"):
            verifier.verify_archive(evil)
        assert not (tmp_path / "escape.txt").exists()
