"""Core data types shared by the scanner, the report and the RPC layer."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, IntEnum
from typing import Any, Iterable, Mapping

# Artifact types
ARTIFACT_CONTAINER_IMAGE = "container_image"
ARTIFACT_FILESYSTEM = "filesystem"
ARTIFACT_REPOSITORY = "repository"

# Application types that may come without a file path
PYTHON_PKG = "python-pkg"
GEM_SPEC = "gemspec"
NODE_PKG = "node-pkg"
JAR = "jar"

BLOB_JSON_SCHEMA_VERSION = 2

# Vulnerability types
VULN_TYPE_UNKNOWN = "unknown"
VULN_TYPE_OS = "os"
VULN_TYPE_LIBRARY = "library"

# Security checks
SECURITY_CHECK_UNKNOWN = "unknown"
SECURITY_CHECK_VULNERABILITY = "vuln"
SECURITY_CHECK_CONFIG = "config"

_VULN_TYPES = (VULN_TYPE_OS, VULN_TYPE_LIBRARY)
_SECURITY_CHECKS = (SECURITY_CHECK_VULNERABILITY, SECURITY_CHECK_CONFIG)


class Severity(IntEnum):
    """Severity of a vulnerability or misconfiguration, lowest first."""

    UNKNOWN = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def from_name(cls, name: str) -> "Severity":
        """Return the severity with the given name; raise ValueError if unknown."""
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"unknown severity: {name}") from None

    def __str__(self) -> str:
        return self.name


SEVERITY_NAMES = [s.name for s in Severity]


def _severity_rank(name: str) -> Severity:
    try:
        return Severity.from_name(name)
    except ValueError:
        return Severity.UNKNOWN


def compare_severity_string(a: str, b: str) -> int:
    """Positive when ``b`` is more severe than ``a``; unknown names rank lowest."""
    return int(_severity_rank(b)) - int(_severity_rank(a))


@dataclass
class Layer:
    digest: str = ""
    diff_id: str = ""


@dataclass
class OS:
    family: str = ""
    name: str = ""
    eosl: bool = False


@dataclass
class Package:
    name: str = ""
    version: str = ""
    release: str = ""
    epoch: int = 0
    arch: str = ""
    src_name: str = ""
    src_version: str = ""
    src_release: str = ""
    src_epoch: int = 0
    license: str = ""
    layer: Layer = field(default_factory=Layer)


@dataclass
class PackageInfo:
    file_path: str = ""
    packages: list[Package] = field(default_factory=list)


@dataclass
class Application:
    type: str = ""
    file_path: str = ""
    libraries: list[Package] = field(default_factory=list)


@dataclass
class PolicyMetadata:
    id: str = ""
    type: str = ""
    title: str = ""
    description: str = ""
    severity: str = ""
    recommended_actions: str = ""
    references: list[str] = field(default_factory=list)


@dataclass
class IacMetadata:
    resource: str = ""
    start_line: int = 0
    end_line: int = 0


@dataclass
class MisconfResult:
    namespace: str = ""
    query: str = ""
    message: str = ""
    policy_metadata: PolicyMetadata = field(default_factory=PolicyMetadata)
    iac_metadata: IacMetadata = field(default_factory=IacMetadata)
    traces: list[str] = field(default_factory=list)


@dataclass
class Misconfiguration:
    file_type: str = ""
    file_path: str = ""
    successes: list[MisconfResult] = field(default_factory=list)
    warnings: list[MisconfResult] = field(default_factory=list)
    failures: list[MisconfResult] = field(default_factory=list)
    exceptions: list[MisconfResult] = field(default_factory=list)
    layer: Layer = field(default_factory=Layer)


@dataclass
class ArtifactInfo:
    schema_version: int = 0
    architecture: str = ""
    created: datetime | None = None
    docker_version: str = ""
    os: str = ""
    history_packages: list[Package] = field(default_factory=list)


@dataclass
class BlobInfo:
    schema_version: int = 0
    digest: str = ""
    diff_id: str = ""
    os: OS | None = None
    package_infos: list[PackageInfo] = field(default_factory=list)
    applications: list[Application] = field(default_factory=list)
    misconfigurations: list[Misconfiguration] = field(default_factory=list)
    opaque_dirs: list[str] = field(default_factory=list)
    whiteout_files: list[str] = field(default_factory=list)


@dataclass
class ArtifactDetail:
    os: OS | None = None
    packages: list[Package] = field(default_factory=list)
    applications: list[Application] = field(default_factory=list)
    misconfigurations: list[Misconfiguration] = field(default_factory=list)
    history_packages: list[Package] = field(default_factory=list)


@dataclass
class ImageMetadata:
    id: str = ""
    diff_ids: list[str] = field(default_factory=list)
    repo_tags: list[str] = field(default_factory=list)
    repo_digests: list[str] = field(default_factory=list)
    config_file: dict[str, Any] | None = None


@dataclass
class ArtifactReference:
    name: str = ""
    type: str = ""
    id: str = ""
    blob_ids: list[str] = field(default_factory=list)
    image_metadata: ImageMetadata = field(default_factory=ImageMetadata)


@dataclass
class CVSS:
    v2_vector: str = ""
    v3_vector: str = ""
    v2_score: float = 0.0
    v3_score: float = 0.0


@dataclass
class Library:
    name: str = ""
    version: str = ""


@dataclass
class ScanOptions:
    vuln_type: list[str] = field(default_factory=list)
    security_checks: list[str] = field(default_factory=list)
    scan_removed_packages: bool = False
    list_all_packages: bool = False


class MisconfStatus(str, Enum):
    """Outcome of a configuration check."""

    PASSED = "PASS"
    FAILURE = "FAIL"
    EXCEPTION = "EXCEPTION"


@dataclass
class DetectedMisconfiguration:
    type: str = ""
    id: str = ""
    title: str = ""
    description: str = ""
    message: str = ""
    namespace: str = ""
    query: str = ""
    resolution: str = ""
    severity: str = ""
    primary_url: str = ""
    references: list[str] = field(default_factory=list)
    status: MisconfStatus | None = None
    layer: Layer = field(default_factory=Layer)
    iac_metadata: IacMetadata = field(default_factory=IacMetadata)
    traces: list[str] = field(default_factory=list)


@dataclass
class DetectedVulnerability:
    """A vulnerability found in a package, with its advisory details."""

    vulnerability_id: str = ""
    vendor_ids: list[str] = field(default_factory=list)
    pkg_name: str = ""
    pkg_path: str = ""
    installed_version: str = ""
    fixed_version: str = ""
    layer: Layer = field(default_factory=Layer)
    severity_source: str = ""
    primary_url: str = ""
    custom: Any = None
    title: str = ""
    description: str = ""
    severity: str = ""
    cwe_ids: list[str] = field(default_factory=list)
    vendor_severity: dict[str, Severity] = field(default_factory=dict)
    cvss: dict[str, CVSS] = field(default_factory=dict)
    references: list[str] = field(default_factory=list)
    published_date: datetime | None = None
    last_modified_date: datetime | None = None
    vulnerability_custom: Any = None


def sort_by_severity(vulns: Iterable[DetectedVulnerability]) -> list[DetectedVulnerability]:
    """Order by package name, installed version, severity (highest first), then ID."""
    return sorted(
        vulns,
        key=lambda v: (
            v.pkg_name,
            v.installed_version,
            -int(_severity_rank(v.severity)),
            v.vulnerability_id,
        ),
    )


def new_vuln_type(s: str) -> str:
    """Return ``s`` if it is a known vulnerability type, else the unknown type."""
    return s if s in _VULN_TYPES else VULN_TYPE_UNKNOWN


def new_security_check(s: str) -> str:
    """Return ``s`` if it is a known security check, else the unknown check."""
    return s if s in _SECURITY_CHECKS else SECURITY_CHECK_UNKNOWN


@dataclass
class DockerOption:
    user_name: str = ""
    password: str = field(default_factory=str)
    registry_token: str = field(default_factory=str)
    timeout: timedelta = timedelta(0)
    insecure_skip_tls_verify: bool = False
    non_ssl: bool = False


_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_WORDS = {"0", "f", "F", "FALSE", "false", "False"}

# Environment variable names, in the order of DockerConfig's fields.
_ENV_VARS = (
    "VULNSCAN_USERNAME",
    "VULNSCAN_PASSWORD",
    "VULNSCAN_REGISTRY_TOKEN",
    "VULNSCAN_INSECURE",
    "VULNSCAN_NON_SSL",
)


def _parse_bool(key: str, value: str) -> bool:
    if value in _TRUE_WORDS:
        return True
    if value in _FALSE_WORDS:
        return False
    raise ValueError(f'parse error on field "{key}": invalid boolean "{value}"')


@dataclass
class DockerConfig:
    """Registry credentials and transport settings read from the environment."""

    user_name: str = ""
    password: str = field(default_factory=str)
    registry_token: str = field(default_factory=str)
    insecure: bool = False
    non_ssl: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DockerConfig":
        """Build a config from ``environ`` (the process environment by default)."""
        env = os.environ if environ is None else environ

        def text(key: str) -> str:
            return env.get(key, "")

        def flag(key: str) -> bool:
            value = env.get(key, "")
            return _parse_bool(key, value) if value else False

        user_var, credential_var, registry_var, insecure_var, non_ssl_var = _ENV_VARS
        return cls(
            user_name=text(user_var),
            password=text(credential_var),
            registry_token=text(registry_var),
            insecure=flag(insecure_var),
            non_ssl=flag(non_ssl_var),
        )


def get_docker_option(
    timeout: timedelta, environ: Mapping[str, str] | None = None
) -> DockerOption:
    """Return the registry options built from the environment and ``timeout``."""
    try:
        cfg = DockerConfig.from_env(environ)
    except ValueError as exc:
        raise ValueError(f"unable to parse environment variables: {exc}") from exc
    return DockerOption(
        user_name=cfg.user_name,
        password=cfg.password,
        registry_token=cfg.registry_token,
        timeout=timeout,
        insecure_skip_tls_verify=cfg.insecure,
        non_ssl=cfg.non_ssl,
    )