"""Tests for aptian.collaborators."""

import gzip
import hashlib
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from aptian.collaborators import (
    Collaborators,
    DebFileExtractor,
    DpkgDebExtractor,
    ExtractorKind,
    GpgSigner,
    GzipCompressor,
    HashlibDigester,
)
from aptian.errors import CompressionError, DigestError, ExtractionError, SigningError
from conftest import build_deb, control_text


class TestHashlibDigester:
    def test_known_hashes(self, tmp_path):
        path = tmp_path / "test.txt"
        path.write_text("Hello, World!")

        digests = HashlibDigester().digest(path)

        assert digests.md5 == "65a8e27d8879283831b664bd8b7f0ad4"
        assert digests.sha1 == "0a0a9f2a6772942557ab5355d76af442f8f65e01"
        assert digests.sha256 == "dffd6021bb2bd5b0af676290809ec3a53191dd81c7f70a4b28688a362182986f"
        assert digests.sha512 == hashlib.sha512(b"Hello, World!").hexdigest()

    def test_equality_needs_all_digests(self, tmp_path):
        a = tmp_path / "a"
        a.write_bytes(b"same")
        b = tmp_path / "b"
        b.write_bytes(b"same")
        c = tmp_path / "c"
        c.write_bytes(b"other")
        digester = HashlibDigester()

        assert digester.digest(a) == digester.digest(b)
        assert digester.digest(a) != digester.digest(c)
        assert digester.digest(a) != digester.digest(a).model_copy(update={"sha512": "0" * 128})

    def test_missing_file(self, tmp_path):
        with pytest.raises(DigestError) as exc_info:
            HashlibDigester().digest(tmp_path / "missing")
        assert exc_info.value.path == tmp_path / "missing"


class TestGzipCompressor:
    def test_writes_companion(self, tmp_path):
        path = tmp_path / "Packages"
        path.write_text("Package: a\n")

        output = GzipCompressor().compress(path)

        assert output == tmp_path / "Packages.gz"
        assert gzip.decompress(output.read_bytes()) == b"Package: a\n"

    def test_output_is_reproducible(self, tmp_path):
        path = tmp_path / "Packages"
        path.write_text("Package: a\n")
        first = GzipCompressor().compress(path).read_bytes()
        assert GzipCompressor().compress(path).read_bytes() == first

    def test_missing_file(self, tmp_path):
        with pytest.raises(CompressionError):
            GzipCompressor().compress(tmp_path / "Packages")


class TestDebFileExtractor:
    def test_reads_control(self, tmp_path):
        control = control_text("hello", "2.10-3", "amd64")
        deb = build_deb(tmp_path / "hello_2.10-3_amd64.deb", control)
        assert DebFileExtractor().extract_control(deb, tmp_path) == control

    def test_not_an_archive(self, tmp_path):
        deb = tmp_path / "broken.deb"
        deb.write_bytes(b"not a real deb")
        with pytest.raises(ExtractionError, match="broken.deb"):
            DebFileExtractor().extract_control(deb, tmp_path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ExtractionError):
            DebFileExtractor().extract_control(tmp_path / "missing.deb", tmp_path)

    def test_no_control_file(self, tmp_path):
        deb = build_deb(tmp_path / "empty.deb", None)
        with pytest.raises(ExtractionError):
            DebFileExtractor().extract_control(deb, tmp_path)


class TestDpkgDebExtractor:
    def test_reads_unpacked_control(self, tmp_path):
        control = control_text("hello")

        def fake_run(cmd, **kwargs):
            target = tmp_path / "control.d"
            target.mkdir()
            (target / "control").write_text(control)
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        with patch("subprocess.run", side_effect=fake_run) as mock_run:
            result = DpkgDebExtractor().extract_control(tmp_path / "hello.deb", tmp_path)

        assert result == control
        cmd = mock_run.call_args.args[0]
        assert cmd[1:] == ["--control", str(tmp_path / "hello.deb"), str(tmp_path / "control.d")]

    def test_failure_status(self, tmp_path):
        completed = subprocess.CompletedProcess([], 2, stdout="", stderr="dpkg-deb: error: not a debian format archive")
        with patch("subprocess.run", return_value=completed):
            with pytest.raises(ExtractionError) as exc_info:
                DpkgDebExtractor().extract_control(tmp_path / "x.deb", tmp_path)
        assert exc_info.value.returncode == 2
        assert "not a debian format archive" in str(exc_info.value)

    def test_missing_binary(self, tmp_path):
        with patch("subprocess.run", side_effect=FileNotFoundError("dpkg-deb")):
            with pytest.raises(ExtractionError, match="not found"):
                DpkgDebExtractor().extract_control(tmp_path / "x.deb", tmp_path)

    def test_no_control_output(self, tmp_path):
        with patch("subprocess.run", return_value=subprocess.CompletedProcess([], 0, stdout="", stderr="")):
            with pytest.raises(ExtractionError, match="no control file"):
                DpkgDebExtractor().extract_control(tmp_path / "x.deb", tmp_path)


class TestGpgSigner:
    def test_sign_commands(self, tmp_path):
        release = tmp_path / "Release"
        completed = subprocess.CompletedProcess([], 0, stdout=b"", stderr=b"")
        with patch("subprocess.run", return_value=completed) as mock_run:
            signer = GpgSigner(binary="gpg")
            signer.sign_detached(release, tmp_path / "Release.gpg", "KEY")
            signer.clearsign(release, tmp_path / "InRelease", "KEY")

        detached, clear = (call.args[0] for call in mock_run.call_args_list)
        assert detached == [
            "gpg", "--batch", "--yes", "--local-user", "KEY", "--armor", "--detach-sign",
            "--output", str(tmp_path / "Release.gpg"), str(release),
        ]  # fmt: skip
        assert clear == [
            "gpg", "--batch", "--yes", "--local-user", "KEY", "--clearsign",
            "--output", str(tmp_path / "InRelease"), str(release),
        ]  # fmt: skip

    def test_sign_failure(self, tmp_path):
        completed = subprocess.CompletedProcess([], 2, stdout=b"", stderr=b"gpg: signing failed: No secret key")
        with patch("subprocess.run", return_value=completed):
            with pytest.raises(SigningError) as exc_info:
                GpgSigner().sign_detached(tmp_path / "Release", tmp_path / "Release.gpg", "KEY")
        assert exc_info.value.returncode == 2
        assert "No secret key" in str(exc_info.value)

    def test_export_public_key(self, tmp_path):
        key = b"-----BEGIN PGP PUBLIC KEY BLOCK-----\n...\n"
        with patch("subprocess.run", return_value=subprocess.CompletedProcess([], 0, stdout=key, stderr=b"")):
            output = GpgSigner().export_public_key("KEY", tmp_path / "pubkey.gpg")
        assert output.read_bytes() == key

    def test_export_unknown_key(self, tmp_path):
        with patch("subprocess.run", return_value=subprocess.CompletedProcess([], 0, stdout=b"", stderr=b"")):
            with pytest.raises(SigningError, match="no public key"):
                GpgSigner().export_public_key("KEY", tmp_path / "pubkey.gpg")

    def test_agent_unavailable(self, tmp_path):
        with patch("subprocess.run", side_effect=FileNotFoundError("gpg")):
            with pytest.raises(SigningError, match="not found"):
                GpgSigner().clearsign(tmp_path / "Release", tmp_path / "InRelease", "KEY")


def test_extractor_kinds():
    assert isinstance(ExtractorKind("debfile").create(), DebFileExtractor)
    assert isinstance(ExtractorKind("dpkg-deb").create(), DpkgDebExtractor)


def test_default_collaborators():
    collaborators = Collaborators(signer=MagicMock())
    assert isinstance(collaborators.extractor, DebFileExtractor)
    assert isinstance(collaborators.digester, HashlibDigester)
    assert isinstance(collaborators.compressor, GzipCompressor)
