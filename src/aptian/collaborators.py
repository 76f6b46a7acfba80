"""External facilities the repository engine delegates to.

Each concern is a small protocol so the engine can be driven with fakes;
the default implementations wrap python-debian, hashlib, gzip and gpg.
"""

import gzip
import hashlib
import logging
import subprocess
import tarfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from debian import arfile, debfile

from aptian.constants import DPKG_DEB_BINARY, GPG_BINARY
from aptian.errors import CompressionError, DigestError, ExtractionError, SigningError
from aptian.models import FileDigestSet

logger = logging.getLogger(__name__)

DIGEST_CHUNK_SIZE = 0x10000


class ControlExtractor(Protocol):
    def extract_control(self, package_file: Path, scratch_dir: Path) -> str: ...


class Digester(Protocol):
    def digest(self, path: Path) -> FileDigestSet: ...


class Compressor(Protocol):
    def compress(self, path: Path) -> Path: ...


class Signer(Protocol):
    def sign_detached(self, path: Path, output: Path, key: str) -> Path: ...

    def clearsign(self, path: Path, output: Path, key: str) -> Path: ...

    def export_public_key(self, key: str, output: Path) -> Path: ...


class DebFileExtractor:
    """Read the control stanza straight out of the .deb with python-debian."""

    def extract_control(self, package_file: Path, scratch_dir: Path) -> str:
        try:
            deb = debfile.DebFile(filename=str(package_file))
        except (debfile.DebError, arfile.ArError, OSError) as e:
            raise ExtractionError(package_file, str(e)) from e
        try:
            content = deb.control.get_content("control")
        except (debfile.DebError, KeyError, tarfile.TarError, OSError, EOFError) as e:
            raise ExtractionError(package_file, f"unreadable control archive: {e}") from e
        finally:
            deb.close()

        if not content:
            raise ExtractionError(package_file, "package has no control file")
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExtractionError(package_file, f"control file is not valid UTF-8: {e}") from e


class DpkgDebExtractor:
    """Unpack the control archive with ``dpkg-deb --control`` into the scratch dir."""

    def __init__(self, binary: str = DPKG_DEB_BINARY):
        self.binary = binary

    def extract_control(self, package_file: Path, scratch_dir: Path) -> str:
        target = scratch_dir / "control.d"
        cmd = [self.binary, "--control", str(package_file), str(target)]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError as e:
            raise ExtractionError(package_file, f"'{self.binary}' not found") from e
        if result.returncode != 0:
            raise ExtractionError(package_file, result.stderr.strip(), result.returncode)

        control_file = target / "control"
        if not control_file.is_file():
            raise ExtractionError(package_file, "package has no control file")
        return control_file.read_text(encoding="utf-8")


class HashlibDigester:
    def digest(self, path: Path) -> FileDigestSet:
        hashers = {name: hashlib.new(name) for name in ("md5", "sha1", "sha256", "sha512")}
        try:
            with path.open("rb") as f:
                while chunk := f.read(DIGEST_CHUNK_SIZE):
                    for hasher in hashers.values():
                        hasher.update(chunk)
        except OSError as e:
            raise DigestError(path, str(e)) from e
        return FileDigestSet(**{name: hasher.hexdigest() for name, hasher in hashers.items()})


class GzipCompressor:
    """Write ``<file>.gz`` beside the file; a zero mtime keeps output reproducible."""

    def __init__(self, level: int = 9):
        self.level = level

    def compress(self, path: Path) -> Path:
        output = path.with_name(f"{path.name}.gz")
        try:
            output.write_bytes(gzip.compress(path.read_bytes(), compresslevel=self.level, mtime=0))
        except OSError as e:
            raise CompressionError(path, str(e)) from e
        logger.debug(f"Compressed {path} -> {output.name}")
        return output


class GpgSigner:
    def __init__(self, binary: str = GPG_BINARY):
        self.binary = binary

    def _run(self, args: list[str], path: Path) -> subprocess.CompletedProcess:
        cmd = [self.binary, "--batch", "--yes", *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, check=False)
        except FileNotFoundError as e:
            raise SigningError(path, f"'{self.binary}' not found") from e
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise SigningError(path, stderr, result.returncode)
        return result

    def sign_detached(self, path: Path, output: Path, key: str) -> Path:
        self._run(["--local-user", key, "--armor", "--detach-sign", "--output", str(output), str(path)], path)
        return output

    def clearsign(self, path: Path, output: Path, key: str) -> Path:
        self._run(["--local-user", key, "--clearsign", "--output", str(output), str(path)], path)
        return output

    def export_public_key(self, key: str, output: Path) -> Path:
        result = self._run(["--armor", "--export", key], output)
        if not result.stdout.strip():
            raise SigningError(output, f"no public key found for '{key}'")
        output.write_bytes(result.stdout)
        return output


class ExtractorKind(str, Enum):
    """Control stanza extraction backends.
    DEBFILE: python-debian reads the archive in-process.
    DPKG_DEB: dpkg-deb unpacks the control archive.
    """

    DEBFILE = "debfile"
    DPKG_DEB = "dpkg-deb"

    def create(self) -> ControlExtractor:
        if self is ExtractorKind.DPKG_DEB:
            return DpkgDebExtractor()
        return DebFileExtractor()


@dataclass
class Collaborators:
    """The set of facilities one add/init run uses."""

    extractor: ControlExtractor = field(default_factory=DebFileExtractor)
    digester: Digester = field(default_factory=HashlibDigester)
    compressor: Compressor = field(default_factory=GzipCompressor)
    signer: Signer = field(default_factory=GpgSigner)
