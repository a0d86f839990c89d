"""Client side of remote scanning: sends scan requests to a scan server."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Protocol

from ..report import Result
from ..types import OS, ScanOptions
from .convert import from_rpc_os, from_rpc_results
from .messages import RpcScanOptions, ScanRequest, ScanResponse
from .retry import retry

_log = logging.getLogger(__name__)

# Headers the protocol sets itself and that callers may not override.
_RESERVED_HEADERS = frozenset({"accept", "content-type", "twirp-version"})


class RemoteScanError(Exception):
    """A scan through the remote server failed."""


class ScanClient(Protocol):
    def scan(
        self, request: ScanRequest, headers: Mapping[str, list[str]] | None
    ) -> ScanResponse: ...


def with_custom_headers(
    custom_headers: Mapping[str, list[str]] | None,
) -> dict[str, list[str]] | None:
    """Return a copy of the headers to send, or None if one of them is reserved."""
    if custom_headers is None:
        return None
    reserved = [key for key in custom_headers if key.lower() in _RESERVED_HEADERS]
    if reserved:
        _log.warning(
            "twirp error setting headers: provided header cannot set %s", reserved[0]
        )
        return None
    return {key: list(values) for key, values in custom_headers.items()}


class RemoteScanner:
    """Scans an artifact by asking a remote scan server."""

    def __init__(
        self, custom_headers: Mapping[str, list[str]] | None, client: ScanClient
    ) -> None:
        self._custom_headers = custom_headers
        self._client = client

    def scan(
        self,
        target: str,
        artifact_key: str,
        blob_keys: Iterable[str],
        options: ScanOptions,
    ) -> tuple[list[Result], OS | None]:
        """Return the results of the remote scan and the detected OS."""
        headers = with_custom_headers(self._custom_headers)
        request = ScanRequest(
            target=target,
            artifact_id=artifact_key,
            blob_ids=list(blob_keys),
            options=RpcScanOptions(
                vuln_type=list(options.vuln_type),
                security_checks=list(options.security_checks),
                list_all_packages=options.list_all_packages,
            ),
        )
        try:
            response = retry(lambda: self._client.scan(request, headers))
        except Exception as exc:
            raise RemoteScanError(
                f"failed to detect vulnerabilities via RPC: {exc}"
            ) from exc
        return from_rpc_results(response.results), from_rpc_os(response.os)