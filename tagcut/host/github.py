"""Release host client for the GitHub REST API.

``ReleaseHost`` is the capability set the orchestrator depends on;
``GitHubHost`` implements it over an injectable ``HttpTransport`` so tests
never touch the network.

Status contracts (anything else is a ``HostError``):

    GET    /repos/{repo}/releases/latest                    200 (404 -> None)
    GET    /repos/{repo}/releases/tags/{tag}                200 (404 -> None)
    GET    /repos/{repo}/releases                           200
    POST   /repos/{repo}/releases                           201
    PATCH  /repos/{repo}/releases/{id}                      200
    DELETE /repos/{repo}/releases/{id}                      204
    POST   {upload_url}?name={asset}                        201
    DELETE /repos/{repo}/releases/assets/{id}               204
    POST   /repos/{repo}/branches/{b}/protection/enforce_admins   200
    DELETE /repos/{repo}/branches/{b}/protection/enforce_admins   204
"""

from __future__ import annotations

import json
import re
import urllib.parse
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from tagcut import __version__
from tagcut.core.deadline import Deadline
from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import as_obj_list, as_str_dict, get_str
from tagcut.host.content_type import sniff_file
from tagcut.host.http import HttpResponse, HttpTransport, RequestBody, UrllibTransport
from tagcut.host.models import Asset, HostError, Release, ReleaseInput

__all__ = ["ACCEPT_TYPE", "USER_AGENT", "GitHubHost", "ReleaseHost", "upload_endpoint"]

ACCEPT_TYPE = "application/vnd.github.v3+json"
USER_AGENT = f"tagcut/{__version__}"

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 60.0
UPLOAD_TIMEOUT_SECONDS = 10 * 60.0

# RFC 6570 query template in upload_url, e.g. "{?name,label}".
_URL_TEMPLATE_RE = re.compile(r"\{\?[0-9A-Za-z_,]+\}")


class ReleaseHost(Protocol):
    """Network capability set over hosted repositories (``repo`` is "owner/name")."""

    def get_latest_release(
        self, repo: str, *, deadline: Deadline | None = None
    ) -> Result[Release | None, HostError]: ...

    def get_release(
        self, repo: str, tag: str, *, deadline: Deadline | None = None
    ) -> Result[Release | None, HostError]: ...

    def get_releases(
        self, repo: str, *, deadline: Deadline | None = None
    ) -> Result[list[Release], HostError]: ...

    def create_release(
        self, repo: str, release: ReleaseInput, *, deadline: Deadline | None = None
    ) -> Result[Release, HostError]: ...

    def edit_release(
        self, repo: str, release_id: int, release: ReleaseInput, *, deadline: Deadline | None = None
    ) -> Result[Release, HostError]: ...

    def delete_release(
        self, repo: str, release_id: int, *, deadline: Deadline | None = None
    ) -> Result[None, HostError]: ...

    def upload_asset(
        self, release: Release, path: Path, *, deadline: Deadline | None = None
    ) -> Result[Asset, HostError]: ...

    def upload_assets(
        self, release: Release, *paths: Path, deadline: Deadline | None = None
    ) -> Result[list[Asset], HostError]: ...

    def delete_asset(
        self, repo: str, asset_id: int, *, deadline: Deadline | None = None
    ) -> Result[None, HostError]: ...

    def set_branch_protection_for_admins(
        self, repo: str, branch: str, enabled: bool, *, deadline: Deadline | None = None
    ) -> Result[None, HostError]: ...


def upload_endpoint(upload_url: str, asset_name: str) -> str:
    """Upload URL with its query template stripped and the escaped asset name added."""
    base = _URL_TEMPLATE_RE.sub("", upload_url)
    return f"{base}?name={urllib.parse.quote_plus(asset_name)}"


def _error_detail(response: HttpResponse) -> str:
    """The API's ``message`` field when present, else the raw body."""
    try:
        obj: object = json.loads(response.text())
    except json.JSONDecodeError:
        text = response.text().strip()
        return text[:200] if text else "empty response"
    data = as_str_dict(obj)
    if data is not None:
        message = get_str(data, "message")
        if message is not None:
            return message
    return response.text().strip()[:200]


class GitHubHost:
    """ReleaseHost over the GitHub REST API.

    Attributes:
        api_url: API root (no trailing slash)
        timeout: Per-request cap in seconds; a deadline can only shorten it
    """

    def __init__(
        self,
        token: str | None,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: HttpTransport | None = None,
    ) -> None:
        self._token = (token or "").strip()
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport: HttpTransport = transport or UrllibTransport()

    @property
    def has_credential(self) -> bool:
        return bool(self._token)

    # -- reads (fall back to anonymous access without a credential) ---------

    def get_latest_release(
        self, repo: str, *, deadline: Deadline | None = None
    ) -> Result[Release | None, HostError]:
        return self._get_optional_release(f"/repos/{repo}/releases/latest", deadline=deadline)

    def get_release(
        self, repo: str, tag: str, *, deadline: Deadline | None = None
    ) -> Result[Release | None, HostError]:
        tag_q = urllib.parse.quote(tag, safe="")
        return self._get_optional_release(f"/repos/{repo}/releases/tags/{tag_q}", deadline=deadline)

    def get_releases(
        self, repo: str, *, deadline: Deadline | None = None
    ) -> Result[list[Release], HostError]:
        url = f"{self.api_url}/repos/{repo}/releases"
        resp = self._send("GET", url, expect=(200,), auth=False, deadline=deadline)
        if isinstance(resp, Err):
            return resp

        obj = self._decode("GET", url, resp.value)
        if isinstance(obj, Err):
            return obj
        items = as_obj_list(obj.value)
        if items is None:
            return Err(HostError("GET", url, resp.value.status, "expected a JSON array"))

        out: list[Release] = []
        for item in items:
            d = as_str_dict(item)
            if d is None:
                continue
            release = Release.from_payload(d)
            if release is not None:
                out.append(release)
        return Ok(out)

    # -- writes (credential required) ---------------------------------------

    def create_release(
        self, repo: str, release: ReleaseInput, *, deadline: Deadline | None = None
    ) -> Result[Release, HostError]:
        url = f"{self.api_url}/repos/{repo}/releases"
        return self._send_release("POST", url, release, expect=201, deadline=deadline)

    def edit_release(
        self, repo: str, release_id: int, release: ReleaseInput, *, deadline: Deadline | None = None
    ) -> Result[Release, HostError]:
        url = f"{self.api_url}/repos/{repo}/releases/{release_id}"
        return self._send_release("PATCH", url, release, expect=200, deadline=deadline)

    def delete_release(
        self, repo: str, release_id: int, *, deadline: Deadline | None = None
    ) -> Result[None, HostError]:
        url = f"{self.api_url}/repos/{repo}/releases/{release_id}"
        resp = self._send("DELETE", url, expect=(204,), auth=True, deadline=deadline)
        return resp if isinstance(resp, Err) else Ok(None)

    def upload_asset(
        self, release: Release, path: Path, *, deadline: Deadline | None = None
    ) -> Result[Asset, HostError]:
        """Stream one file to the release's upload endpoint."""
        if not release.upload_url:
            return Err(HostError("POST", "", 0, f"release {release.id} has no upload_url"))

        url = upload_endpoint(release.upload_url, path.name)
        try:
            content_type = sniff_file(path)
            length = path.stat().st_size
            f = path.open("rb")
        except OSError as e:
            return Err(HostError("POST", url, 0, f"cannot read asset {path}: {e}"))

        headers = {"Content-Type": content_type, "Content-Length": str(length)}
        with f:
            resp = self._send(
                "POST",
                url,
                expect=(201,),
                auth=True,
                body=f,
                extra_headers=headers,
                cap=UPLOAD_TIMEOUT_SECONDS,
                deadline=deadline,
            )
        if isinstance(resp, Err):
            return resp

        obj = self._decode("POST", url, resp.value)
        if isinstance(obj, Err):
            return obj
        data = as_str_dict(obj.value)
        asset = Asset.from_payload(data) if data is not None else None
        if asset is None:
            return Err(HostError("POST", url, resp.value.status, "unexpected asset payload"))
        return Ok(asset)

    def upload_assets(
        self, release: Release, *paths: Path, deadline: Deadline | None = None
    ) -> Result[list[Asset], HostError]:
        """Upload files in order, stopping at the first failure.

        Assets uploaded before the failure are left in place; callers that
        need them removed must track them (the orchestrator uploads one at a
        time for that reason).
        """
        uploaded: list[Asset] = []
        for path in paths:
            result = self.upload_asset(release, path, deadline=deadline)
            if isinstance(result, Err):
                return result
            uploaded.append(result.value)
        return Ok(uploaded)

    def delete_asset(
        self, repo: str, asset_id: int, *, deadline: Deadline | None = None
    ) -> Result[None, HostError]:
        url = f"{self.api_url}/repos/{repo}/releases/assets/{asset_id}"
        resp = self._send("DELETE", url, expect=(204,), auth=True, deadline=deadline)
        return resp if isinstance(resp, Err) else Ok(None)

    def set_branch_protection_for_admins(
        self, repo: str, branch: str, enabled: bool, *, deadline: Deadline | None = None
    ) -> Result[None, HostError]:
        branch_q = urllib.parse.quote(branch, safe="")
        url = f"{self.api_url}/repos/{repo}/branches/{branch_q}/protection/enforce_admins"
        if enabled:
            resp = self._send("POST", url, expect=(200,), auth=True, deadline=deadline)
        else:
            resp = self._send("DELETE", url, expect=(204,), auth=True, deadline=deadline)
        return resp if isinstance(resp, Err) else Ok(None)

    # -- plumbing -----------------------------------------------------------

    def _get_optional_release(
        self, path: str, *, deadline: Deadline | None
    ) -> Result[Release | None, HostError]:
        url = f"{self.api_url}{path}"
        resp = self._send("GET", url, expect=(200, 404), auth=False, deadline=deadline)
        if isinstance(resp, Err):
            return resp
        if resp.value.status == 404:
            return Ok(None)
        return self._release_from(resp.value, "GET", url)

    def _send_release(
        self,
        method: str,
        url: str,
        release: ReleaseInput,
        *,
        expect: int,
        deadline: Deadline | None,
    ) -> Result[Release, HostError]:
        body = json.dumps(release.to_payload()).encode("utf-8")
        resp = self._send(
            method,
            url,
            expect=(expect,),
            auth=True,
            body=body,
            extra_headers={"Content-Type": "application/json"},
            deadline=deadline,
        )
        if isinstance(resp, Err):
            return resp
        return self._release_from(resp.value, method, url)

    def _release_from(
        self, response: HttpResponse, method: str, url: str
    ) -> Result[Release, HostError]:
        obj = self._decode(method, url, response)
        if isinstance(obj, Err):
            return obj
        data = as_str_dict(obj.value)
        release = Release.from_payload(data) if data is not None else None
        if release is None:
            return Err(HostError(method, url, response.status, "unexpected release payload"))
        return Ok(release)

    def _decode(self, method: str, url: str, response: HttpResponse) -> Result[object, HostError]:
        try:
            return Ok(json.loads(response.text()))
        except json.JSONDecodeError as e:
            return Err(HostError(method, url, response.status, f"invalid JSON: {e}"))

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": ACCEPT_TYPE, "User-Agent": USER_AGENT}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _send(
        self,
        method: str,
        url: str,
        *,
        expect: tuple[int, ...],
        auth: bool,
        body: RequestBody = None,
        extra_headers: Mapping[str, str] | None = None,
        cap: float | None = None,
        deadline: Deadline | None,
    ) -> Result[HttpResponse, HostError]:
        if auth and not self._token:
            return Err(
                HostError(method, url, 0, "no credential configured (set GITHUB_TOKEN or --token)")
            )

        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)

        limit = cap if cap is not None else self.timeout
        timeout = limit if deadline is None else deadline.timeout(limit)
        if timeout <= 0:
            return Err(HostError(method, url, 0, "deadline exceeded"))

        result = self._transport.request(method, url, headers=headers, body=body, timeout=timeout)
        if isinstance(result, Err):
            return Err(HostError(method, url, 0, result.error.message))

        response = result.value
        if response.status not in expect:
            return Err(HostError(method, url, response.status, _error_detail(response)))
        return Ok(response)
