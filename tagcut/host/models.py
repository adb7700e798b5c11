"""Release host data model.

``Release`` and ``Asset`` mirror the hosting API resources; the orchestrator
only ever holds a cached copy for the duration of one attempt.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tagcut.core.structured import StrDict, as_obj_list, as_str_dict, get_int, get_raw_str, get_str


@dataclass(frozen=True, slots=True)
class HostError:
    """The hosting API did not answer with the expected status.

    Attributes:
        method: HTTP method of the failed call
        url: Request URL
        status: Response status, 0 when no response arrived
        detail: Response message (or transport error text)
    """

    method: str
    url: str
    status: int
    detail: str

    @property
    def message(self) -> str:
        if self.status:
            return f"{self.method} {self.url}: HTTP {self.status}: {self.detail}"
        return f"{self.method} {self.url}: {self.detail}"

    def pretty(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class Asset:
    id: int
    name: str
    size: int = 0
    content_type: str = ""
    state: str = ""
    download_url: str = ""

    @classmethod
    def from_payload(cls, data: StrDict) -> Asset | None:
        asset_id = get_int(data, "id")
        name = get_str(data, "name")
        if asset_id is None or name is None:
            return None
        return cls(
            id=asset_id,
            name=name,
            size=get_int(data, "size") or 0,
            content_type=get_str(data, "content_type") or "",
            state=get_str(data, "state") or "",
            download_url=get_str(data, "browser_download_url") or "",
        )


@dataclass(frozen=True, slots=True)
class Release:
    id: int
    tag_name: str
    name: str = ""
    target: str = ""
    draft: bool = False
    prerelease: bool = False
    body: str = ""
    html_url: str = ""
    upload_url: str = ""
    assets: tuple[Asset, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, data: StrDict) -> Release | None:
        """Build a Release from a decoded API object; None if id/tag are missing."""
        release_id = get_int(data, "id")
        tag = get_str(data, "tag_name")
        if release_id is None or tag is None:
            return None

        assets: list[Asset] = []
        for item in as_obj_list(data.get("assets")) or []:
            d = as_str_dict(item)
            if d is None:
                continue
            asset = Asset.from_payload(d)
            if asset is not None:
                assets.append(asset)

        return cls(
            id=release_id,
            tag_name=tag,
            name=get_raw_str(data, "name") or "",
            target=get_str(data, "target_commitish") or "",
            draft=data.get("draft") is True,
            prerelease=data.get("prerelease") is True,
            body=get_raw_str(data, "body") or "",
            html_url=get_str(data, "html_url") or "",
            upload_url=get_str(data, "upload_url") or "",
            assets=tuple(assets),
        )


@dataclass(frozen=True, slots=True)
class ReleaseInput:
    """Payload for creating or editing a release."""

    tag_name: str
    target: str
    name: str
    body: str = ""
    draft: bool = False
    prerelease: bool = False

    def to_payload(self) -> dict[str, object]:
        return {
            "tag_name": self.tag_name,
            "target_commitish": self.target,
            "name": self.name,
            "body": self.body,
            "draft": self.draft,
            "prerelease": self.prerelease,
        }
