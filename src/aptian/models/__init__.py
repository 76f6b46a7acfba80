"""Expose repository metadata models."""

from .digests import FileDigestSet
from .layout import RepositoryLayout
from .release import ReleaseDescriptor, ReleaseFile
from .stanza import (
    ControlFields,
    ControlStanza,
    StanzaStreamParser,
    dump_packages,
    iter_stanzas,
    parse_stanzas,
    read_packages_file,
)

__all__ = [
    "ControlFields",
    "ControlStanza",
    "FileDigestSet",
    "ReleaseDescriptor",
    "ReleaseFile",
    "RepositoryLayout",
    "StanzaStreamParser",
    "dump_packages",
    "iter_stanzas",
    "parse_stanzas",
    "read_packages_file",
]
