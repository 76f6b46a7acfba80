from pydantic import BaseModel, ConfigDict


class FileDigestSet(BaseModel):
    """MD5, SHA1, SHA256 and SHA512 hex digests of one file.

    Two sets are equal only when all four digests match.
    """

    model_config = ConfigDict(frozen=True)

    md5: str
    sha1: str
    sha256: str
    sha512: str
