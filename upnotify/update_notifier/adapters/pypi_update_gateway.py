from __future__ import annotations

import re

import httpx
from packaging.version import InvalidVersion, Version

from upnotify.update_notifier.ports.update_gateway import (
    Update,
    UpdateGateway,
    UpdateGatewayCause,
    UpdateGatewayError,
)

PYPI_SIMPLE_JSON = "application/vnd.pypi.simple.v1+json"
SDIST_SUFFIXES = (".tar.gz", ".zip")


class PyPIUpdateGateway(UpdateGateway):
    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
        base_url: str = "https://pypi.org",
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")

    async def fetch_update(self, package_name: str) -> Update | None:
        project = _normalize(package_name)
        request_path = f"/simple/{project}/"
        headers = {"Accept": PYPI_SIMPLE_JSON, "User-Agent": "upnotify"}

        try:
            if self._client is not None:
                response = await self._client.get(
                    f"{self._base_url}{request_path}",
                    headers=headers,
                    timeout=self._timeout,
                )
            else:
                async with httpx.AsyncClient(
                    base_url=self._base_url, timeout=self._timeout
                ) as client:
                    response = await client.get(request_path, headers=headers)
        except httpx.RequestError as exc:
            raise UpdateGatewayError(cause=UpdateGatewayCause.REQUEST_FAILED) from exc

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            raise UpdateGatewayError(cause=UpdateGatewayCause.TOO_MANY_REQUESTS)

        if response.status_code == httpx.codes.FORBIDDEN:
            raise UpdateGatewayError(cause=UpdateGatewayCause.FORBIDDEN)

        if response.status_code == httpx.codes.NOT_FOUND:
            raise UpdateGatewayError(cause=UpdateGatewayCause.NOT_FOUND)

        if response.is_error:
            raise UpdateGatewayError(cause=UpdateGatewayCause.ERROR_RESPONSE)

        try:
            data = response.json()
        except ValueError as exc:
            raise UpdateGatewayError(cause=UpdateGatewayCause.INVALID_RESPONSE) from exc

        if not isinstance(data, dict):
            raise UpdateGatewayError(cause=UpdateGatewayCause.INVALID_RESPONSE)

        files = data.get("files") or []
        versions = data.get("versions") or []
        if not isinstance(files, list) or not isinstance(versions, list):
            raise UpdateGatewayError(cause=UpdateGatewayCause.INVALID_RESPONSE)

        available = _non_yanked_versions(files)
        candidates: list[tuple[Version, str]] = []
        for raw in versions:
            if not isinstance(raw, str) or raw not in available:
                continue
            try:
                version = Version(raw)
            except InvalidVersion:
                continue
            if version.is_prerelease or version.is_devrelease:
                continue
            candidates.append((version, raw))

        if not candidates:
            return None

        return Update(latest_version=max(candidates)[1])


def _normalize(name: str) -> str:
    # PEP 503
    return re.sub(r"[-_.]+", "-", name).lower()


def _non_yanked_versions(files: list[object]) -> set[str]:
    versions: set[str] = set()
    for file in files:
        if not isinstance(file, dict):
            raise UpdateGatewayError(cause=UpdateGatewayCause.INVALID_RESPONSE)
        if file.get("yanked"):
            continue
        filename = file.get("filename")
        if isinstance(filename, str) and (version := _version_from_filename(filename)):
            versions.add(version)
    return versions


def _version_from_filename(filename: str) -> str | None:
    if filename.endswith(".whl"):
        parts = filename[: -len(".whl")].split("-")
        return parts[1] if len(parts) >= 3 else None
    for suffix in SDIST_SUFFIXES:
        if filename.endswith(suffix):
            _, sep, version = filename[: -len(suffix)].rpartition("-")
            return version if sep else None
    return None
