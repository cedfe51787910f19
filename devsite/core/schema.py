from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator


class WireModel(BaseModel):
    """Base for camelCase wire shapes exposed under snake_case attributes."""

    model_config = ConfigDict(populate_by_name=True)


# ----------------------------------------------------------------------
# compiler result file
# ----------------------------------------------------------------------
class ResultModel(WireModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class FilePos(ResultModel):
    line: int
    char: int


class FileRange(ResultModel):
    file: str
    start: FilePos
    end: FilePos


class Problem(ResultModel):
    is_error: bool = Field(alias="isError")
    message: str
    has_range: bool = Field(alias="hasRange")
    span: FileRange | None = Field(default=None, alias="range")

    @model_validator(mode="after")
    def _range_present_when_flagged(self) -> "Problem":
        if self.has_range and self.span is None:
            raise ValueError("range is required when hasRange is true")
        return self


class CompileResult(ResultModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    problems: list[Problem]
    status: bool
    compilation_time: int = Field(alias="compilationTime")
    linking_time: int = Field(alias="linkingTime")
    binary_sizes: list[int] = Field(alias="binarySizes")
    has_main: bool = Field(alias="hasMain")

    def to_wire(self) -> dict[str, Any]:
        """Serialise back to the compiler's shape, keeping only fields it wrote.

        Top-level keys this model does not know are passed through untouched.
        """

        wire = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        wire.update(self.model_extra or {})
        return wire


# ----------------------------------------------------------------------
# inbound request bodies
# ----------------------------------------------------------------------
class ConfirmedBody(WireModel):
    confirmation_key: StrictStr | None = Field(default=None, alias="confirmationKey")


class CompileRequestBody(ConfirmedBody):
    content: StrictStr
    time: StrictStr | None = None


class DownloadedReleaseBody(ConfirmedBody):
    release_id: StrictStr = Field(alias="releaseID")
    platform_id: StrictStr = Field(alias="platformID")


class CommitAuthor(WireModel):
    name: str = ""
    email: str | None = None


class Commit(WireModel):
    id: str
    title: str = ""
    message: str = ""
    author: CommitAuthor = Field(default_factory=CommitAuthor)
    repository: str = ""
    site: str = ""
    timestamp: str = ""
    ref: str = ""


class PushedCommitsBody(ConfirmedBody):
    commits: list[Commit]


# ----------------------------------------------------------------------
# persisted records
# ----------------------------------------------------------------------
class ReleaseVersion(WireModel):
    value: str
    is_prerelease: bool = Field(default=False, alias="isPrerelease")
    prerelease: str = ""


class ReleaseFile(WireModel):
    id: str
    platform: str = ""
    target: str = ""
    downloads: int = 0
    path: str = ""


class Release(WireModel):
    release_id: str = Field(alias="releaseID")
    version: ReleaseVersion
    title: str = ""
    content: str = ""
    files: list[ReleaseFile] = Field(default_factory=list)
    index: int = 0
    created_at: str = Field(default="", alias="createdAt")


class WakatimeConfig(WireModel):
    access_token: str = Field(default="", alias="accessToken")
    refresh_token: str = Field(default="", alias="refreshToken")
    expires_at: str = Field(default="", alias="expiresAt")
    client_secret: str = Field(default="", alias="clientSecret")
    client_id: str = Field(default="", alias="clientID")
    refresh_url: str = Field(default="", alias="refreshURL")


class ServerConfig(WireModel):
    wakatime: WakatimeConfig = Field(default_factory=WakatimeConfig)


class TokenGrant(BaseModel):
    """Fields persisted after a successful token refresh."""

    access_token: str
    refresh_token: str
    expires_at: str
