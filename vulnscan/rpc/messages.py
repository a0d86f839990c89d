"""Messages exchanged between the scan client and the scan server."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any


class RpcSeverity(IntEnum):
    """Severity as carried on the wire, lowest first."""

    UNKNOWN = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    def __str__(self) -> str:
        return self.name


class ErrorCode(str, Enum):
    """Error codes of the RPC protocol."""

    CANCELED = "canceled"
    UNKNOWN = "unknown"
    INVALID_ARGUMENT = "invalid_argument"
    MALFORMED = "malformed"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    NOT_FOUND = "not_found"
    BAD_ROUTE = "bad_route"
    ALREADY_EXISTS = "already_exists"
    PERMISSION_DENIED = "permission_denied"
    UNAUTHENTICATED = "unauthenticated"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    FAILED_PRECONDITION = "failed_precondition"
    ABORTED = "aborted"
    OUT_OF_RANGE = "out_of_range"
    UNIMPLEMENTED = "unimplemented"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"
    DATA_LOSS = "data_loss"

    @property
    def http_status(self) -> int:
        """HTTP status code that carries this error."""
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorCode.CANCELED: 408,
    ErrorCode.UNKNOWN: 500,
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.MALFORMED: 400,
    ErrorCode.DEADLINE_EXCEEDED: 408,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.BAD_ROUTE: 404,
    ErrorCode.ALREADY_EXISTS: 409,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.RESOURCE_EXHAUSTED: 429,
    ErrorCode.FAILED_PRECONDITION: 412,
    ErrorCode.ABORTED: 409,
    ErrorCode.OUT_OF_RANGE: 400,
    ErrorCode.UNIMPLEMENTED: 501,
    ErrorCode.INTERNAL: 500,
    ErrorCode.UNAVAILABLE: 503,
    ErrorCode.DATA_LOSS: 500,
}


class RpcError(Exception):
    """An error reported by the RPC protocol, with its code."""

    def __init__(self, code: ErrorCode, msg: str) -> None:
        super().__init__(f"twirp error {code.value}: {msg}")
        self.code = code
        self.msg = msg


@dataclass
class RpcLayer:
    digest: str = ""
    diff_id: str = ""


@dataclass
class RpcPackage:
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
    layer: RpcLayer | None = None


@dataclass
class RpcLibrary:
    name: str = ""
    version: str = ""
    license: str = ""


@dataclass
class RpcCVSS:
    v2_vector: str = ""
    v3_vector: str = ""
    v2_score: float = 0.0
    v3_score: float = 0.0


@dataclass
class RpcVulnerability:
    vulnerability_id: str = ""
    pkg_name: str = ""
    installed_version: str = ""
    fixed_version: str = ""
    title: str = ""
    description: str = ""
    severity: RpcSeverity = RpcSeverity.UNKNOWN
    references: list[str] = field(default_factory=list)
    layer: RpcLayer | None = None
    cvss: dict[str, RpcCVSS] = field(default_factory=dict)
    severity_source: str = ""
    cwe_ids: list[str] = field(default_factory=list)
    primary_url: str = ""
    last_modified_date: datetime | None = None
    published_date: datetime | None = None
    custom_advisory_data: Any = None
    custom_vuln_data: Any = None


@dataclass
class RpcDetectedMisconfiguration:
    type: str = ""
    id: str = ""
    title: str = ""
    description: str = ""
    message: str = ""
    namespace: str = ""
    resolution: str = ""
    severity: RpcSeverity = RpcSeverity.UNKNOWN
    primary_url: str = ""
    references: list[str] = field(default_factory=list)
    status: str = ""
    layer: RpcLayer | None = None


@dataclass
class RpcOS:
    family: str = ""
    name: str = ""
    eosl: bool = False


@dataclass
class RpcPackageInfo:
    file_path: str = ""
    packages: list[RpcPackage] = field(default_factory=list)


@dataclass
class RpcApplication:
    type: str = ""
    file_path: str = ""
    libraries: list[RpcLibrary] = field(default_factory=list)


@dataclass
class RpcMisconfResult:
    namespace: str = ""
    message: str = ""
    id: str = ""
    type: str = ""
    title: str = ""
    severity: str = ""


@dataclass
class RpcMisconfiguration:
    file_type: str = ""
    file_path: str = ""
    successes: list[RpcMisconfResult] = field(default_factory=list)
    warnings: list[RpcMisconfResult] = field(default_factory=list)
    failures: list[RpcMisconfResult] = field(default_factory=list)
    exceptions: list[RpcMisconfResult] = field(default_factory=list)


@dataclass
class RpcArtifactInfo:
    schema_version: int = 0
    architecture: str = ""
    created: datetime | None = None
    docker_version: str = ""
    os: str = ""
    history_packages: list[RpcPackage] = field(default_factory=list)


@dataclass
class PutArtifactRequest:
    artifact_id: str = ""
    artifact_info: RpcArtifactInfo | None = None


@dataclass
class RpcBlobInfo:
    schema_version: int = 0
    digest: str = ""
    diff_id: str = ""
    os: RpcOS | None = None
    package_infos: list[RpcPackageInfo] = field(default_factory=list)
    applications: list[RpcApplication] = field(default_factory=list)
    misconfigurations: list[RpcMisconfiguration] = field(default_factory=list)
    opaque_dirs: list[str] = field(default_factory=list)
    whiteout_files: list[str] = field(default_factory=list)


@dataclass
class PutBlobRequest:
    diff_id: str = ""
    blob_info: RpcBlobInfo | None = None


@dataclass
class MissingBlobsRequest:
    artifact_id: str = ""
    blob_ids: list[str] = field(default_factory=list)


@dataclass
class MissingBlobsResponse:
    missing_artifact: bool = False
    missing_blob_ids: list[str] = field(default_factory=list)


@dataclass
class RpcScanOptions:
    vuln_type: list[str] = field(default_factory=list)
    security_checks: list[str] = field(default_factory=list)
    list_all_packages: bool = False


@dataclass
class ScanRequest:
    target: str = ""
    artifact_id: str = ""
    blob_ids: list[str] = field(default_factory=list)
    options: RpcScanOptions | None = None


@dataclass
class RpcResult:
    target: str = ""
    vulnerabilities: list[RpcVulnerability] = field(default_factory=list)
    misconfigurations: list[RpcDetectedMisconfiguration] = field(default_factory=list)
    result_class: str = ""
    type: str = ""
    packages: list[RpcPackage] = field(default_factory=list)


@dataclass
class ScanResponse:
    os: RpcOS | None = None
    results: list[RpcResult] = field(default_factory=list)