"""Shared fixtures: minimal .deb archives and a signer that needs no gpg."""

import io
import tarfile
from pathlib import Path

import pytest

from aptian.collaborators import Collaborators
from aptian.operations import init_repository


def control_text(
    package: str,
    version: str = "1.0",
    architecture: str = "amd64",
    source: str | None = None,
) -> str:
    lines = [f"Package: {package}"]
    if source:
        lines.append(f"Source: {source}")
    lines += [
        f"Version: {version}",
        f"Architecture: {architecture}",
        "Maintainer: Jane Doe <jane@example.com>",
        "Installed-Size: 12",
        "Section: misc",
        "Priority: optional",
        f"Description: test package {package}",
        " Longer description of the",
        " test package.",
    ]
    return "\n".join(lines) + "\n"


def _tar_gz(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def _ar_member(name: str, data: bytes) -> bytes:
    header = f"{name:<16}{0:<12}{0:<6}{0:<6}{'100644':<8}{len(data):<10}`\n".encode("ascii")
    assert len(header) == 60
    return header + data + (b"\n" if len(data) % 2 else b"")


def build_deb(path: Path, control: str | None, payload: bytes = b"payload") -> Path:
    """Write a minimal Debian binary package; ``control=None`` leaves the control file out."""
    control_members = {"./control": control.encode("utf-8")} if control is not None else {"./md5sums": b""}
    path.write_bytes(
        b"!<arch>\n"
        + _ar_member("debian-binary", b"2.0\n")
        + _ar_member("control.tar.gz", _tar_gz(control_members))
        + _ar_member("data.tar.gz", _tar_gz({"./usr/share/doc/payload": payload}))
    )
    return path


class FakeSigner:
    """Signer writing recognisable placeholder files."""

    def __init__(self):
        self.calls: list[tuple[str, Path, str]] = []

    def sign_detached(self, path: Path, output: Path, key: str) -> Path:
        self.calls.append(("detached", path, key))
        output.write_text("-----BEGIN PGP SIGNATURE-----\n\n-----END PGP SIGNATURE-----\n")
        return output

    def clearsign(self, path: Path, output: Path, key: str) -> Path:
        self.calls.append(("clearsign", path, key))
        output.write_text("-----BEGIN PGP SIGNED MESSAGE-----\n\n" + path.read_text())
        return output

    def export_public_key(self, key: str, output: Path) -> Path:
        self.calls.append(("export", output, key))
        output.write_text(f"-----BEGIN PGP PUBLIC KEY BLOCK-----\n{key}\n")
        return output


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def collaborators(signer) -> Collaborators:
    return Collaborators(signer=signer)


@pytest.fixture
def repo(tmp_path, collaborators) -> Path:
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    return init_repository(repo_dir, "repo@example.com", collaborators)


@pytest.fixture
def debs(tmp_path) -> Path:
    """Directory to build package files in."""
    path = tmp_path / "incoming"
    path.mkdir()
    return path
