"""Repository-level operations: init and add."""

import logging
import shutil
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field
from pydantic.dataclasses import dataclass

from aptian.collaborators import Collaborators
from aptian.config import RepositoryConfig, load_config, save_config
from aptian.constants import ARCH_ALL, DISTS_DIR, PACKAGE_SUFFIXES, POOL_DIR, PUBLIC_KEY_FILENAME
from aptian.errors import UsageError
from aptian.index import ArchitectureIndex, order_for_indexing
from aptian.models import ControlStanza, FileDigestSet, RepositoryLayout
from aptian.pool import place_package, pool_path_for
from aptian.release import publish_release
from aptian.utils import reset_dir

logger = logging.getLogger(__name__)


class AddReport(BaseModel):
    """Outcome of one add run."""

    added: list[str] = Field(default_factory=list)
    skipped: list[Path] = Field(default_factory=list)
    already_in_pool: list[str] = Field(default_factory=list)
    already_indexed: list[str] = Field(default_factory=list)
    not_indexed: list[str] = Field(default_factory=list)


@dataclass(config=ConfigDict(arbitrary_types_allowed=True))
class _Intake:
    source: Path
    stanza: ControlStanza
    pool_path: PurePosixPath
    digests: FileDigestSet


def init_repository(directory: Path, gpg: str, collaborators: Collaborators | None = None) -> Path:
    """Create pool/, dists/ and aptian.conf in an empty directory and export the signing key.

    Raises:
        UsageError: if the directory does not exist or is not empty.
    """
    collaborators = collaborators or Collaborators()
    if not directory.is_dir():
        raise UsageError(f"directory '{directory}' does not exist")
    if any(directory.iterdir()):
        raise UsageError(f"directory '{directory}' is not empty")
    if not gpg:
        raise UsageError("signing key is not given")
    config = RepositoryConfig(gpg=gpg)

    (directory / POOL_DIR).mkdir()
    (directory / DISTS_DIR).mkdir()
    save_config(directory, config)
    collaborators.signer.export_public_key(config.gpg, directory / PUBLIC_KEY_FILENAME)
    logger.info(f"Initialized APT repository in {directory}")
    return directory


def _intake(
    layout: RepositoryLayout,
    package_files: list[Path],
    collaborators: Collaborators,
    report: AddReport,
) -> list[_Intake]:
    intake = []
    for package_file in package_files:
        if package_file.suffix not in PACKAGE_SUFFIXES:
            logger.warning(f"{package_file} is not a Debian package ({'/'.join(PACKAGE_SUFFIXES)}), skipping")
            report.skipped.append(package_file)
            continue

        scratch = reset_dir(layout.scratch_dir)
        stanza = ControlStanza(collaborators.extractor.extract_control(package_file, scratch))
        pool_path = pool_path_for(stanza, layout.dist, layout.comp, package_file.name)
        digests = collaborators.digester.digest(package_file)
        stanza.append_pool_entry(pool_path.as_posix(), package_file.stat().st_size, digests)
        logger.debug(f"Read {stanza!r} from {package_file}")
        intake.append(_Intake(source=package_file, stanza=stanza, pool_path=pool_path, digests=digests))
    return intake


def add_packages(
    directory: Path,
    dist: str,
    comp: str,
    package_files: list[Path],
    collaborators: Collaborators | None = None,
) -> AddReport:
    """Add package files to <dist>/<comp>: pool them, index them, re-sign the Release.

    Every package is read and digested, and every Packages list it will join is
    loaded, before the pool is touched, so a bad package or a corrupt index
    aborts the run without writing anything.
    """
    collaborators = collaborators or Collaborators()
    if not package_files:
        raise UsageError("no package files given")
    layout = RepositoryLayout(base=directory, dist=dist, comp=comp)
    if not layout.config_file.is_file():
        raise UsageError(f"'{directory}' is not an aptian repository (no {layout.config_file.name})")
    config = load_config(directory)

    report = AddReport()
    try:
        intake = _intake(layout, package_files, collaborators, report)
        index = ArchitectureIndex(layout.component_root)
        index.load_for(item.stanza for item in intake)

        for item in intake:
            if not place_package(layout.base, item.source, item.pool_path, item.digests, collaborators.digester):
                report.already_in_pool.append(item.pool_path.as_posix())

        for stanza in order_for_indexing(item.stanza for item in intake):
            label = f"{stanza.package}_{stanza.version}_{stanza.architecture}"
            if index.add(stanza):
                report.added.append(label)
            elif stanza.architecture == ARCH_ALL and not index.architectures:
                report.not_indexed.append(label)
            else:
                report.already_indexed.append(label)
        index.write(collaborators.compressor)

        publish_release(layout, collaborators.digester, collaborators.signer, config.gpg)
    finally:
        shutil.rmtree(layout.scratch_dir, ignore_errors=True)

    return report
