"""Scanning of an artifact into a report."""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from ..report import SCHEMA_VERSION, Metadata, Report, Result, remove_layers
from ..types import ARTIFACT_CONTAINER_IMAGE, OS, ArtifactReference, ScanOptions

_log = logging.getLogger(__name__)


class ScanError(Exception):
    """Scanning an artifact failed."""


class Driver(Protocol):
    def scan(
        self,
        target: str,
        artifact_key: str,
        blob_keys: Iterable[str],
        options: ScanOptions,
    ) -> tuple[list[Result], OS | None]: ...


class Artifact(Protocol):
    def inspect(self) -> ArtifactReference: ...


class Scanner:
    """Inspects an artifact and scans it with a driver."""

    def __init__(self, driver: Driver, artifact: Artifact) -> None:
        self._driver = driver
        self._artifact = artifact

    def scan_artifact(self, options: ScanOptions) -> Report:
        """Inspect the artifact, scan it and return the report."""
        try:
            info = self._artifact.inspect()
        except Exception as exc:
            raise ScanError(f"failed analysis: {exc}") from exc

        try:
            results, os_found = self._driver.scan(info.name, info.id, info.blob_ids, options)
        except Exception as exc:
            raise ScanError(f"scan failed: {exc}") from exc
        results = list(results)

        if os_found is not None and os_found.eosl:
            _log.warning(
                "This OS version is no longer supported by the distribution: %s %s",
                os_found.family,
                os_found.name,
            )
            _log.warning(
                "The vulnerability detection may be insufficient because security "
                "updates are not provided"
            )

        # Layers only make sense for container images.
        if info.type != ARTIFACT_CONTAINER_IMAGE:
            remove_layers(results)

        meta = info.image_metadata
        return Report(
            schema_version=SCHEMA_VERSION,
            artifact_name=info.name,
            artifact_type=info.type,
            metadata=Metadata(
                os=os_found,
                image_id=meta.id,
                diff_ids=list(meta.diff_ids),
                repo_tags=list(meta.repo_tags),
                repo_digests=list(meta.repo_digests),
                image_config=meta.config_file,
            ),
            results=results,
        )