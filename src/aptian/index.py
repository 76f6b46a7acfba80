"""Per-architecture Packages indexes of one component."""

import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import ConfigDict, Field
from pydantic.dataclasses import dataclass

from aptian.collaborators import Compressor
from aptian.constants import ARCH_ALL, ARCH_DIR_PREFIX, PACKAGES_FILENAME
from aptian.errors import FormatError
from aptian.models import ControlStanza, dump_packages, read_packages_file
from aptian.utils import atomic_write_text

logger = logging.getLogger(__name__)


def order_for_indexing(stanzas: Iterable[ControlStanza]) -> list[ControlStanza]:
    """Move ``Architecture: all`` stanzas after the rest, keeping relative order.

    ``all`` packages fan out to every known architecture, so every concrete
    architecture in the batch has to be known before they are added.
    """
    return sorted(stanzas, key=lambda stanza: stanza.architecture == ARCH_ALL)


@dataclass(config=ConfigDict(arbitrary_types_allowed=True))
class _ArchitectureEntry:
    stanzas: list[ControlStanza] = Field(default_factory=list)
    dirty: bool = False


class ArchitectureIndex:
    """Cache of ``binary-<arch>/Packages`` lists for one component directory.

    An architecture key is absent until loaded; once present, its list holds
    the on-disk Packages contents (or nothing if the file does not exist yet)
    plus whatever was added during this run. Only changed architectures are
    written back.
    """

    def __init__(self, component_dir: Path):
        self.component_dir = component_dir
        self._entries: dict[str, _ArchitectureEntry] = {}

    def packages_file(self, arch: str) -> Path:
        return self.component_dir / f"{ARCH_DIR_PREFIX}{arch}" / PACKAGES_FILENAME

    @property
    def architectures(self) -> list[str]:
        """Architectures currently loaded, in load order."""
        return list(self._entries)

    def is_loaded(self, arch: str) -> bool:
        return arch in self._entries

    def packages(self, arch: str) -> list[ControlStanza]:
        return list(self._load(arch).stanzas)

    def _load(self, arch: str) -> _ArchitectureEntry:
        if entry := self._entries.get(arch):
            return entry

        path = self.packages_file(arch)
        entry = _ArchitectureEntry()
        if path.is_file():
            entry.stanzas = read_packages_file(path)
            logger.debug(f"Loaded {len(entry.stanzas)} packages for {arch} from {path}")
        else:
            logger.debug(f"No Packages file for {arch} yet, starting empty")
        self._entries[arch] = entry
        return entry

    def on_disk_architectures(self) -> list[str]:
        if not self.component_dir.is_dir():
            return []
        return sorted(
            child.name.removeprefix(ARCH_DIR_PREFIX)
            for child in self.component_dir.iterdir()
            if child.is_dir()
            and child.name.startswith(ARCH_DIR_PREFIX)
            and len(child.name) > len(ARCH_DIR_PREFIX)
        )

    def load_all(self) -> list[str]:
        """Force-load every architecture that has a directory under the component."""
        for arch in self.on_disk_architectures():
            self._load(arch)
        return self.architectures

    def load_for(self, stanzas: Iterable[ControlStanza]) -> list[str]:
        """Load every list that adding these stanzas will touch.

        Lets a caller surface a corrupt Packages file before it changes anything else.
        """
        for stanza in stanzas:
            if stanza.architecture == ARCH_ALL:
                self.load_all()
            else:
                self._load(stanza.architecture)
        return self.architectures

    def _append(self, arch: str, stanza: ControlStanza) -> bool:
        entry = self._load(arch)
        if any(existing.identity == stanza.identity for existing in entry.stanzas):
            logger.info(f"{stanza.package} {stanza.version} is already in the {arch} index, skipping")
            return False
        entry.stanzas.append(stanza)
        entry.dirty = True
        return True

    def add(self, stanza: ControlStanza) -> list[str]:
        """Add a stanza to its architecture's list, or to every list for ``all``.

        Returns:
            The architectures the stanza was actually appended to.
        """
        arch = stanza.architecture
        if not arch:
            raise FormatError(f"package '{stanza.package}' has an empty architecture")

        if arch != ARCH_ALL:
            return [arch] if self._append(arch, stanza) else []

        targets = self.load_all()
        if not targets:
            logger.warning(
                f"{stanza.package} {stanza.version} is architecture-independent but the component has no "
                "architectures yet, it is not indexed"
            )
        return [target for target in targets if self._append(target, stanza.copy())]

    def write(self, compressor: Compressor) -> list[Path]:
        """Write every changed architecture's Packages file and its .gz companion."""
        written = []
        for arch, entry in self._entries.items():
            if not entry.dirty:
                continue
            path = self.packages_file(arch)
            atomic_write_text(path, dump_packages(entry.stanzas))
            compressor.compress(path)
            entry.dirty = False
            logger.info(f"Wrote {len(entry.stanzas)} packages to {path}")
            written.append(path)
        return written
