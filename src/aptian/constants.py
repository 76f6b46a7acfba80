from os import getenv

# logging level for the rich handler installed in aptian/__init__.py
LOG_LEVEL = getenv("APTIAN_LOG_LEVEL", "INFO").upper()

# gpg binary used for signing and key export
GPG_BINARY = getenv("APTIAN_GPG", "gpg")
DPKG_DEB_BINARY = getenv("APTIAN_DPKG_DEB", "dpkg-deb")

CONFIG_FILENAME = "aptian.conf"
PUBLIC_KEY_FILENAME = "pubkey.gpg"

POOL_DIR = "pool"
DISTS_DIR = "dists"
SCRATCH_DIR = "tmp"

PACKAGES_FILENAME = "Packages"
RELEASE_FILENAME = "Release"
RELEASE_SIGNATURE_FILENAME = "Release.gpg"
INRELEASE_FILENAME = "InRelease"

# files under dists/<dist>/ that are products of the Release itself
RELEASE_OUTPUTS = frozenset({RELEASE_FILENAME, RELEASE_SIGNATURE_FILENAME, INRELEASE_FILENAME})

ARCH_DIR_PREFIX = "binary-"
ARCH_ALL = "all"

PACKAGE_SUFFIXES = (".deb", ".udeb")
