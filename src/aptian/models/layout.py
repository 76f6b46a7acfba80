from pathlib import Path

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from aptian.constants import (
    ARCH_DIR_PREFIX,
    CONFIG_FILENAME,
    DISTS_DIR,
    INRELEASE_FILENAME,
    PACKAGES_FILENAME,
    POOL_DIR,
    RELEASE_FILENAME,
    RELEASE_SIGNATURE_FILENAME,
    SCRATCH_DIR,
)
from aptian.errors import UsageError


class RepositoryLayout(BaseModel):
    """Paths of one distribution/component inside a repository base directory."""

    model_config = ConfigDict(frozen=True)

    base: Path
    dist: str
    comp: str

    @field_validator("dist", "comp")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not value or "/" in value or value in {".", ".."}:
            raise UsageError(f"invalid distribution or component name: '{value}'")
        return value

    @computed_field
    @property
    def config_file(self) -> Path:
        return self.base / CONFIG_FILENAME

    @computed_field
    @property
    def pool_root(self) -> Path:
        """pool/<dist>/<comp>"""
        return self.base / POOL_DIR / self.dist / self.comp

    @computed_field
    @property
    def dist_root(self) -> Path:
        """dists/<dist>"""
        return self.base / DISTS_DIR / self.dist

    @computed_field
    @property
    def component_root(self) -> Path:
        """dists/<dist>/<comp>"""
        return self.dist_root / self.comp

    @computed_field
    @property
    def scratch_dir(self) -> Path:
        return self.base / SCRATCH_DIR

    @property
    def release_file(self) -> Path:
        return self.dist_root / RELEASE_FILENAME

    @property
    def release_signature_file(self) -> Path:
        return self.dist_root / RELEASE_SIGNATURE_FILENAME

    @property
    def inrelease_file(self) -> Path:
        return self.dist_root / INRELEASE_FILENAME

    def packages_file(self, arch: str) -> Path:
        return self.component_root / f"{ARCH_DIR_PREFIX}{arch}" / PACKAGES_FILENAME
