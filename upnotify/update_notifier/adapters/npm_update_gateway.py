from __future__ import annotations

from urllib.parse import quote

import httpx

from upnotify.update_notifier.ports.update_gateway import (
    Update,
    UpdateGateway,
    UpdateGatewayCause,
    UpdateGatewayError,
)


class NpmUpdateGateway(UpdateGateway):
    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
        base_url: str = "https://registry.npmjs.org",
        dist_tag: str = "latest",
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._dist_tag = dist_tag

    async def fetch_update(self, package_name: str) -> Update | None:
        # "@scope/name" is addressed as "@scope%2fname"
        request_path = f"/-/package/{quote(package_name, safe='@')}/dist-tags"
        headers = {"Accept": "application/json", "User-Agent": "upnotify"}

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
            raise UpdateGatewayError(
                cause=UpdateGatewayCause.NOT_FOUND,
                message=f"Package {package_name!r} is not published on the npm registry.",
            )

        if response.is_error:
            raise UpdateGatewayError(cause=UpdateGatewayCause.ERROR_RESPONSE)

        try:
            data = response.json()
        except ValueError as exc:
            raise UpdateGatewayError(cause=UpdateGatewayCause.INVALID_RESPONSE) from exc

        if not isinstance(data, dict):
            raise UpdateGatewayError(cause=UpdateGatewayCause.INVALID_RESPONSE)

        version = data.get(self._dist_tag)
        if not isinstance(version, str) or not version.strip():
            return None

        return Update(latest_version=version.strip())
