"""Pool path resolution and placement of package files into the pool."""

import logging
import os
import shutil
from pathlib import Path, PurePosixPath

from aptian.collaborators import Digester
from aptian.constants import POOL_DIR
from aptian.errors import ConflictError, FormatError
from aptian.models import ControlStanza, FileDigestSet

logger = logging.getLogger(__name__)


def apt_pool_prefix(name: str) -> str:
    """Return the pool bucket for a source package name.

    ``lib*`` names get a 4-character bucket so the ``l`` bucket does not
    swallow every library; everything else is bucketed by its first character.

    Examples:
        >>> apt_pool_prefix("libfoo")
        'libf'
        >>> apt_pool_prefix("foo")
        'f'
        >>> apt_pool_prefix("lib")
        'l'
    """
    if not name:
        raise FormatError("cannot compute pool prefix of an empty package name")
    if name.startswith("lib") and len(name) > 4:
        return name[:4]
    return name[0]


def pool_path_for(stanza: ControlStanza, dist: str, comp: str, filename: str) -> PurePosixPath:
    """pool/<dist>/<comp>/<bucket>/<source-name>/<filename>, relative to the repo base."""
    source = stanza.source_name
    return PurePosixPath(POOL_DIR, dist, comp, apt_pool_prefix(source), source, filename)


def place_package(
    base_dir: Path,
    source: Path,
    pool_path: PurePosixPath,
    digests: FileDigestSet,
    digester: Digester,
) -> bool:
    """Copy a package file into the pool unless an identical copy is there.

    Returns:
        True if the file was copied, False if an identical file already existed.

    Raises:
        ConflictError: if a different file occupies the destination.
    """
    dest = base_dir / pool_path
    if dest.exists():
        if digester.digest(dest) == digests:
            logger.info(f"{pool_path} is already in the pool, skipping copy")
            return False
        raise ConflictError(dest, source)

    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp_dest = dest.with_name(f".{dest.name}.new")
    shutil.copyfile(source, tmp_dest)
    os.replace(tmp_dest, dest)
    logger.info(f"Copied {source.name} to {pool_path}")
    return True
