"""Scan results and the report that groups them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from .types import OS, DetectedMisconfiguration, DetectedVulnerability, Layer, Package

SCHEMA_VERSION = 2


class ResultClass(str, Enum):
    """Kind of target a result describes."""

    OS_PKGS = "os-pkgs"
    LANG_PKGS = "lang-pkgs"
    CONFIG = "config"


@dataclass
class Result:
    """Findings for one scan target; ``result_class`` is None when unset."""

    target: str = ""
    result_class: ResultClass | None = None
    type: str = ""
    packages: list[Package] = field(default_factory=list)
    vulnerabilities: list[DetectedVulnerability] = field(default_factory=list)
    misconfigurations: list[DetectedMisconfiguration] = field(default_factory=list)


@dataclass
class Metadata:
    os: OS | None = None
    image_id: str = ""
    diff_ids: list[str] = field(default_factory=list)
    repo_tags: list[str] = field(default_factory=list)
    repo_digests: list[str] = field(default_factory=list)
    image_config: dict[str, Any] | None = None


@dataclass
class Report:
    schema_version: int = SCHEMA_VERSION
    artifact_name: str = ""
    artifact_type: str = ""
    metadata: Metadata = field(default_factory=Metadata)
    results: list[Result] = field(default_factory=list)


def remove_layers(results: Iterable[Result]) -> None:
    """Clear the layer of every package, vulnerability and misconfiguration in place."""
    for result in results:
        for item in (*result.packages, *result.vulnerabilities, *result.misconfigurations):
            item.layer = Layer()