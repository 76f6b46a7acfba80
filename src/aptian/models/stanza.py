"""Debian control stanzas and the Packages stream parser."""

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO

from pydantic import BaseModel, ConfigDict

from aptian.errors import FormatError
from aptian.models.digests import FileDigestSet

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 0x1000

# lowercase names of the header keys sliced into ControlFields
_FIELD_KEYS = frozenset({"package", "version", "architecture", "source", "filename"})
_REQUIRED_FIELDS = (("package", "Package"), ("version", "Version"), ("architecture", "Architecture"))


class ControlFields(BaseModel):
    """Semantic values sliced out of a stanza's header lines."""

    model_config = ConfigDict(frozen=True)

    package: str
    version: str
    architecture: str
    source: str | None = None
    filename: str | None = None


def parse_fields(lines: Iterable[str]) -> ControlFields:
    """Scan header lines once, keeping the last occurrence of each known key.

    Raises:
        FormatError: if Package, Version or Architecture is absent or empty.
    """
    found: dict[str, str] = {}
    for line in lines:
        if not line or line[0].isspace():
            # continuation lines never carry a recognised key
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        if (name := key.strip().lower()) in _FIELD_KEYS:
            found[name] = value.strip()

    for name, title in _REQUIRED_FIELDS:
        if not found.get(name):
            raise FormatError(f"package control stanza doesn't have '{title}:' field")

    # these end up as pool and dists directory names
    source = found.get("source", "").split()
    for title, value in (
        ("Package", found["package"]),
        ("Architecture", found["architecture"]),
        ("Source", source[0] if source else ""),
    ):
        if "/" in value or value in (".", ".."):
            raise FormatError(f"package control stanza has an invalid '{title}: {value}' field")

    return ControlFields(
        package=found["package"],
        version=found["version"],
        architecture=found["architecture"],
        source=found.get("source") or None,
        filename=found.get("filename") or None,
    )


class ControlStanza:
    """One package paragraph: an append-only list of lines plus parsed fields.

    The raw lines are the source of truth and serialize back byte for byte;
    ``fields`` is recomputed from them after every append.
    """

    def __init__(self, text: str | Iterable[str]):
        if isinstance(text, str):
            lines = text.replace("\r", "").rstrip("\n").split("\n")
        else:
            lines = [line.rstrip("\r\n") for line in text]
        if lines == [""]:
            raise FormatError("package control stanza is empty")
        if any(not line for line in lines):
            raise FormatError("package control stanza contains a blank line")
        self._lines: list[str] = lines
        self.fields: ControlFields = parse_fields(self._lines)

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    @property
    def package(self) -> str:
        return self.fields.package

    @property
    def version(self) -> str:
        return self.fields.version

    @property
    def architecture(self) -> str:
        return self.fields.architecture

    @property
    def filename(self) -> str | None:
        return self.fields.filename

    @property
    def source_name(self) -> str:
        """Source package name, falling back to the binary package name.

        A ``Source:`` value may carry the source version in parentheses,
        e.g. ``libfoo (1.2-1)``; only the name is returned.
        """
        if self.fields.source:
            return self.fields.source.split()[0]
        return self.fields.package

    @property
    def identity(self) -> tuple[str, str]:
        """The (package, version) pair a Packages index is unique by."""
        return self.fields.package, self.fields.version

    def _append_line(self, key: str, value: str) -> None:
        self._lines.append(f"{key}: {value}")
        self.fields = parse_fields(self._lines)

    def append_pool_entry(self, pool_path: str, size: int, digests: FileDigestSet) -> None:
        """Append Filename, Size and the four digest headers.

        A stanza's pool filename is assigned exactly once.
        """
        if not pool_path:
            raise ValueError("pool path must not be empty")
        if self.fields.filename is not None:
            raise FormatError(
                f"could not append filename to '{self.package}', the control stanza already has "
                f"'Filename: {self.fields.filename}'"
            )
        self._append_line("Filename", pool_path)
        self._append_line("Size", str(size))
        self._append_line("MD5sum", digests.md5)
        self._append_line("SHA1", digests.sha1)
        self._append_line("SHA256", digests.sha256)
        self._append_line("SHA512", digests.sha512)

    def copy(self) -> "ControlStanza":
        return ControlStanza(self._lines)

    def to_text(self) -> str:
        return "".join(f"{line}\n" for line in self._lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ControlStanza):
            return NotImplemented
        return self._lines == other._lines

    def __repr__(self) -> str:
        return f"ControlStanza({self.package}={self.version} [{self.architecture}])"


class StanzaStreamParser:
    """Incremental splitter of a Packages-format byte stream into stanzas.

    Bytes are fed in arbitrary chunks. A blank line ends the current stanza,
    carriage returns are dropped, and ``finish`` acts as a trailing blank line.
    """

    def __init__(self):
        self._line_start = True
        self._buf = bytearray()
        self.stanzas: list[ControlStanza] = []

    def feed(self, data: bytes) -> None:
        for byte in data:
            if byte == 0x0D:  # \r
                continue
            if byte == 0x0A:  # \n
                if self._line_start:
                    self._emit()
                elif self._buf:
                    self._buf.append(byte)
                self._line_start = True
            else:
                self._line_start = False
                self._buf.append(byte)

    def finish(self) -> list[ControlStanza]:
        self.feed(b"\n\n")
        return self.stanzas

    def _emit(self) -> None:
        if not self._buf:
            return
        try:
            text = self._buf.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"package control stanza is not valid UTF-8: {e}") from e
        self.stanzas.append(ControlStanza(text))
        self._buf.clear()


def iter_stanzas(stream: BinaryIO, chunk_size: int = READ_CHUNK_SIZE) -> Iterator[ControlStanza]:
    """Stream stanzas out of a binary file object."""
    parser = StanzaStreamParser()
    while chunk := stream.read(chunk_size):
        parser.feed(chunk)
        yield from parser.stanzas
        parser.stanzas.clear()
    yield from parser.finish()


def parse_stanzas(data: bytes | str) -> list[ControlStanza]:
    """Parse an in-memory Packages document."""
    parser = StanzaStreamParser()
    parser.feed(data.encode("utf-8") if isinstance(data, str) else data)
    return parser.finish()


def read_packages_file(path: Path) -> list[ControlStanza]:
    """Read every stanza from an uncompressed Packages file."""
    with path.open("rb") as f:
        stanzas = list(iter_stanzas(f))
    logger.debug(f"Read {len(stanzas)} stanzas from {path}")
    return stanzas


def dump_packages(stanzas: Iterable[ControlStanza]) -> str:
    """Serialize stanzas separated by one blank line, ending in a newline."""
    return "\n".join(stanza.to_text() for stanza in stanzas)
