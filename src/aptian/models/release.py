"""Release descriptor model and its deb822 rendering."""

from datetime import UTC, datetime
from email.utils import format_datetime

from debian import deb822
from pydantic import BaseModel, Field

from aptian.errors import FormatError
from aptian.models.digests import FileDigestSet
from aptian.utils import try_parse_date

# Release section name -> FileDigestSet attribute
DIGEST_SECTIONS = {
    "MD5Sum": "md5",
    "SHA1": "sha1",
    "SHA256": "sha256",
    "SHA512": "sha512",
}


class ReleaseFile(BaseModel):
    """One file listed in the Release digest sections."""

    path: str
    size: int
    digests: FileDigestSet


class ReleaseDescriptor(BaseModel):
    """Contents of dists/<dist>/Release."""

    origin: str
    label: str
    suite: str
    codename: str
    not_automatic: bool = False
    but_automatic_upgrades: bool = False
    components: list[str] = Field(default_factory=list)
    architectures: list[str] = Field(default_factory=list)
    date: datetime
    files: list[ReleaseFile] = Field(default_factory=list)

    def to_deb822(self) -> deb822.Deb822:
        entry = deb822.Deb822()
        entry["Origin"] = self.origin
        entry["Label"] = self.label
        entry["Suite"] = self.suite
        entry["Codename"] = self.codename
        entry["NotAutomatic"] = "yes" if self.not_automatic else "no"
        entry["ButAutomaticUpgrades"] = "yes" if self.but_automatic_upgrades else "no"
        entry["Components"] = " ".join(self.components)
        entry["Architectures"] = " ".join(self.architectures)
        entry["Date"] = format_datetime(self.date.astimezone(UTC), usegmt=True)
        for section, attr in DIGEST_SECTIONS.items():
            lines = [f" {getattr(f.digests, attr)} {f.size} {f.path}" for f in self.files]
            entry[section] = "\n" + "\n".join(lines) if lines else ""
        return entry

    def dump(self) -> str:
        return self.to_deb822().dump()

    @classmethod
    def from_text(cls, text: str) -> "ReleaseDescriptor":
        """Read back a Release file written by ``dump``."""
        entry = deb822.Release(text)
        date = try_parse_date(entry.get("Date"))
        if date is None:
            raise FormatError("Release file has no valid 'Date:' field")

        by_path: dict[str, dict] = {}
        for section, attr in DIGEST_SECTIONS.items():
            for item in entry.get(section, []):
                record = by_path.setdefault(
                    item["name"], {"path": item["name"], "size": int(item["size"]), "digests": {}}
                )
                record["digests"][attr] = item[section.lower()]

        try:
            return cls(
                origin=entry.get("Origin", ""),
                label=entry.get("Label", ""),
                suite=entry.get("Suite", ""),
                codename=entry.get("Codename", ""),
                not_automatic=entry.get("NotAutomatic") == "yes",
                but_automatic_upgrades=entry.get("ButAutomaticUpgrades") == "yes",
                components=entry.get("Components", "").split(),
                architectures=entry.get("Architectures", "").split(),
                date=date,
                files=[ReleaseFile.model_validate(record) for record in by_path.values()],
            )
        except ValueError as e:
            raise FormatError(f"malformed Release file: {e}") from e
