"""Rebuilding and signing dists/<dist>/Release from what is on disk."""

import logging
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

from debian import deb822

from aptian.collaborators import Digester, Signer
from aptian.constants import ARCH_DIR_PREFIX, RELEASE_OUTPUTS
from aptian.models import ReleaseDescriptor, ReleaseFile, RepositoryLayout
from aptian.utils import atomic_write_text, try_parse_date, utc_now

logger = logging.getLogger(__name__)


class ReleaseDescriptorBuilder:
    """Scan a distribution directory and describe it as a Release file.

    Only the filesystem is consulted, so the descriptor lists exactly what a
    client will download.
    """

    def __init__(self, dist_root: Path, dist: str, digester: Digester):
        self.dist_root = dist_root
        self.dist = dist
        self.digester = digester

    def components(self) -> list[str]:
        if not self.dist_root.is_dir():
            return []
        return sorted(child.name for child in self.dist_root.iterdir() if child.is_dir())

    def architectures(self, components: list[str]) -> list[str]:
        found: dict[str, None] = {}
        for comp in components:
            for child in sorted((self.dist_root / comp).iterdir()):
                if child.is_dir() and child.name.startswith(ARCH_DIR_PREFIX):
                    found.setdefault(child.name.removeprefix(ARCH_DIR_PREFIX))
        return [arch for arch in found if arch]

    def iter_files(self):
        """Yield every regular file under the distribution root, sorted by walk order.

        The Release outputs and half-written dotfiles are left out.
        """
        for dirpath, dirnames, filenames in os.walk(self.dist_root):
            dirnames.sort()
            current = Path(dirpath)
            for name in sorted(filenames):
                path = current / name
                if name.startswith(".") or not path.is_file():
                    continue
                if current == self.dist_root and name in RELEASE_OUTPUTS:
                    continue
                yield path

    def build(self, date: datetime | None = None) -> ReleaseDescriptor:
        components = self.components()
        files = [
            ReleaseFile(
                path=path.relative_to(self.dist_root).as_posix(),
                size=path.stat().st_size,
                digests=self.digester.digest(path),
            )
            for path in self.iter_files()
        ]
        return ReleaseDescriptor(
            origin=self.dist,
            label=self.dist,
            suite=self.dist,
            codename=self.dist,
            components=components,
            architectures=self.architectures(components),
            date=date or utc_now(),
            files=files,
        )


def previous_release_date(release_file: Path) -> datetime | None:
    """Date of an already published Release file, if there is a readable one."""
    if not release_file.is_file():
        return None
    with release_file.open(encoding="utf-8") as f:
        date = try_parse_date(deb822.Release(f).get("Date"))
    if date is not None and date.tzinfo is None:
        date = date.replace(tzinfo=UTC)
    return date


def next_release_date(previous: datetime | None) -> datetime:
    """Current time, moved past ``previous`` so republished Release dates always advance."""
    now = utc_now()
    if previous is not None and now <= previous:
        logger.info(f"Previous Release is dated {previous}, stamping one second after it")
        return previous + timedelta(seconds=1)
    return now


def publish_release(layout: RepositoryLayout, digester: Digester, signer: Signer, key: str) -> ReleaseDescriptor:
    """Regenerate Release, Release.gpg and InRelease for the layout's distribution."""
    date = next_release_date(previous_release_date(layout.release_file))
    descriptor = ReleaseDescriptorBuilder(layout.dist_root, layout.dist, digester).build(date)
    atomic_write_text(layout.release_file, descriptor.dump())
    logger.info(
        f"Wrote {layout.release_file} listing {len(descriptor.files)} files for "
        f"components [{' '.join(descriptor.components)}] and architectures [{' '.join(descriptor.architectures)}]"
    )

    signer.sign_detached(layout.release_file, layout.release_signature_file, key)
    signer.clearsign(layout.release_file, layout.inrelease_file, key)
    logger.info(f"Signed {layout.release_file} with key {key}")
    return descriptor
