"""Conversion between scanner data types and RPC messages."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Iterable

from ..report import Result, ResultClass
from ..types import (
    BLOB_JSON_SCHEMA_VERSION,
    CVSS,
    OS,
    Application,
    ArtifactInfo,
    BlobInfo,
    DetectedMisconfiguration,
    DetectedVulnerability,
    Layer,
    MisconfResult,
    MisconfStatus,
    Misconfiguration,
    Package,
    PackageInfo,
    PolicyMetadata,
    Severity,
)
from .messages import (
    MissingBlobsRequest,
    PutArtifactRequest,
    PutBlobRequest,
    RpcApplication,
    RpcArtifactInfo,
    RpcBlobInfo,
    RpcCVSS,
    RpcDetectedMisconfiguration,
    RpcLayer,
    RpcLibrary,
    RpcMisconfiguration,
    RpcMisconfResult,
    RpcOS,
    RpcPackage,
    RpcPackageInfo,
    RpcResult,
    RpcSeverity,
    RpcVulnerability,
    ScanResponse,
)

_log = logging.getLogger(__name__)


def _rpc_severity(name: str) -> RpcSeverity:
    try:
        return RpcSeverity(int(Severity.from_name(name)))
    except ValueError as exc:
        _log.warning("%s", exc)
        return RpcSeverity.UNKNOWN


def _struct_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, Mapping):
        converted = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"invalid map key type: {type(key).__name__}")
            converted[key] = _struct_value(item)
        return converted
    if isinstance(value, (list, tuple)):
        return [_struct_value(item) for item in value]
    raise TypeError(f"invalid type: {type(value).__name__}")


def _to_struct_value(value: Any) -> Any:
    """Normalise ``value`` to a JSON-like structure; None if it cannot be carried."""
    try:
        return _struct_value(value)
    except TypeError:
        return None


def _result_class(value: str) -> ResultClass | None:
    try:
        return ResultClass(value) if value else None
    except ValueError:
        return None


def _misconf_status(value: str) -> MisconfStatus | None:
    try:
        return MisconfStatus(value) if value else None
    except ValueError:
        return None


def to_rpc_layer(layer: Layer) -> RpcLayer:
    """Return the RPC form of a layer."""
    return RpcLayer(digest=layer.digest, diff_id=layer.diff_id)


def from_rpc_layer(rpc_layer: RpcLayer | None) -> Layer:
    """Return the layer of an RPC layer; an empty layer when it is absent."""
    if rpc_layer is None:
        return Layer()
    return Layer(digest=rpc_layer.digest, diff_id=rpc_layer.diff_id)


def to_rpc_pkgs(pkgs: Iterable[Package]) -> list[RpcPackage]:
    """Return the RPC form of packages."""
    return [
        RpcPackage(
            name=pkg.name,
            version=pkg.version,
            release=pkg.release,
            epoch=pkg.epoch,
            arch=pkg.arch,
            src_name=pkg.src_name,
            src_version=pkg.src_version,
            src_release=pkg.src_release,
            src_epoch=pkg.src_epoch,
            license=pkg.license,
            layer=to_rpc_layer(pkg.layer),
        )
        for pkg in pkgs
    ]


def from_rpc_pkgs(rpc_pkgs: Iterable[RpcPackage]) -> list[Package]:
    """Return packages from their RPC form."""
    return [
        Package(
            name=pkg.name,
            version=pkg.version,
            release=pkg.release,
            epoch=pkg.epoch,
            arch=pkg.arch,
            src_name=pkg.src_name,
            src_version=pkg.src_version,
            src_release=pkg.src_release,
            src_epoch=pkg.src_epoch,
            license=pkg.license,
            layer=from_rpc_layer(pkg.layer),
        )
        for pkg in rpc_pkgs
    ]


def from_rpc_libraries(rpc_libs: Iterable[RpcLibrary]) -> list[Package]:
    """Return library packages from their RPC form."""
    return [Package(name=lib.name, version=lib.version, license=lib.license) for lib in rpc_libs]


def to_rpc_libraries(libs: Iterable[Any]) -> list[RpcLibrary]:
    """Return the RPC form of libraries; a missing licence becomes empty."""
    return [
        RpcLibrary(name=lib.name, version=lib.version, license=getattr(lib, "license", ""))
        for lib in libs
    ]


def to_rpc_vulns(vulns: Iterable[DetectedVulnerability]) -> list[RpcVulnerability]:
    """Return the RPC form of detected vulnerabilities."""
    rpc_vulns = []
    for vuln in vulns:
        cvss = {
            vendor: RpcCVSS(
                v2_vector=score.v2_vector,
                v3_vector=score.v3_vector,
                v2_score=score.v2_score,
                v3_score=score.v3_score,
            )
            for vendor, score in vuln.cvss.items()
        }
        rpc_vulns.append(
            RpcVulnerability(
                vulnerability_id=vuln.vulnerability_id,
                pkg_name=vuln.pkg_name,
                installed_version=vuln.installed_version,
                fixed_version=vuln.fixed_version,
                title=vuln.title,
                description=vuln.description,
                severity=_rpc_severity(vuln.severity),
                references=list(vuln.references),
                layer=to_rpc_layer(vuln.layer),
                cvss=cvss,
                severity_source=vuln.severity_source,
                cwe_ids=list(vuln.cwe_ids),
                primary_url=vuln.primary_url,
                last_modified_date=vuln.last_modified_date,
                published_date=vuln.published_date,
                custom_advisory_data=(
                    _to_struct_value(vuln.custom) if vuln.custom is not None else None
                ),
                custom_vuln_data=(
                    _to_struct_value(vuln.vulnerability_custom)
                    if vuln.vulnerability_custom is not None
                    else None
                ),
            )
        )
    return rpc_vulns


def to_rpc_misconfs(
    misconfs: Iterable[DetectedMisconfiguration],
) -> list[RpcDetectedMisconfiguration]:
    """Return the RPC form of detected misconfigurations."""
    return [
        RpcDetectedMisconfiguration(
            type=m.type,
            id=m.id,
            title=m.title,
            description=m.description,
            message=m.message,
            namespace=m.namespace,
            resolution=m.resolution,
            severity=_rpc_severity(m.severity),
            primary_url=m.primary_url,
            references=list(m.references),
            status=m.status.value if m.status is not None else "",
            layer=to_rpc_layer(m.layer),
        )
        for m in misconfs
    ]


def from_rpc_vulns(rpc_vulns: Iterable[RpcVulnerability]) -> list[DetectedVulnerability]:
    """Return detected vulnerabilities from their RPC form."""
    vulns = []
    for vuln in rpc_vulns:
        cvss = {
            vendor: CVSS(
                v2_vector=score.v2_vector,
                v3_vector=score.v3_vector,
                v2_score=score.v2_score,
                v3_score=score.v3_score,
            )
            for vendor, score in vuln.cvss.items()
        }
        vulns.append(
            DetectedVulnerability(
                vulnerability_id=vuln.vulnerability_id,
                pkg_name=vuln.pkg_name,
                installed_version=vuln.installed_version,
                fixed_version=vuln.fixed_version,
                layer=from_rpc_layer(vuln.layer),
                severity_source=vuln.severity_source,
                primary_url=vuln.primary_url,
                custom=vuln.custom_advisory_data,
                title=vuln.title,
                description=vuln.description,
                severity=Severity(int(vuln.severity)).name,
                cwe_ids=list(vuln.cwe_ids),
                cvss=cvss,
                references=list(vuln.references),
                published_date=vuln.published_date,
                last_modified_date=vuln.last_modified_date,
                vulnerability_custom=vuln.custom_vuln_data,
            )
        )
    return vulns


def from_rpc_misconfs(
    rpc_misconfs: Iterable[RpcDetectedMisconfiguration],
) -> list[DetectedMisconfiguration]:
    """Return detected misconfigurations from their RPC form."""
    return [
        DetectedMisconfiguration(
            type=m.type,
            id=m.id,
            title=m.title,
            description=m.description,
            message=m.message,
            namespace=m.namespace,
            resolution=m.resolution,
            severity=str(m.severity),
            primary_url=m.primary_url,
            references=list(m.references),
            status=_misconf_status(m.status),
            layer=from_rpc_layer(m.layer),
        )
        for m in rpc_misconfs
    ]


def from_rpc_results(rpc_results: Iterable[RpcResult]) -> list[Result]:
    """Return scan results from their RPC form."""
    return [
        Result(
            target=r.target,
            vulnerabilities=from_rpc_vulns(r.vulnerabilities),
            misconfigurations=from_rpc_misconfs(r.misconfigurations),
            result_class=_result_class(r.result_class),
            type=r.type,
            packages=from_rpc_pkgs(r.packages),
        )
        for r in rpc_results
    ]


def from_rpc_os(rpc_os: RpcOS | None) -> OS | None:
    """Return the OS of an RPC OS, or None when it is absent."""
    if rpc_os is None:
        return None
    return OS(family=rpc_os.family, name=rpc_os.name, eosl=rpc_os.eosl)


def to_rpc_os(fos: OS | None) -> RpcOS | None:
    """Return the RPC form of an OS, or None when it is absent."""
    if fos is None:
        return None
    return RpcOS(family=fos.family, name=fos.name, eosl=fos.eosl)


def from_rpc_package_infos(rpc_pkg_infos: Iterable[RpcPackageInfo]) -> list[PackageInfo]:
    """Return package infos from their RPC form."""
    return [
        PackageInfo(file_path=info.file_path, packages=from_rpc_pkgs(info.packages))
        for info in rpc_pkg_infos
    ]


def from_rpc_applications(rpc_apps: Iterable[RpcApplication]) -> list[Application]:
    """Return applications from their RPC form."""
    return [
        Application(
            type=app.type,
            file_path=app.file_path,
            libraries=from_rpc_libraries(app.libraries),
        )
        for app in rpc_apps
    ]


def from_rpc_misconf_results(rpc_results: Iterable[RpcMisconfResult]) -> list[MisconfResult]:
    """Return misconfiguration check results from their RPC form."""
    return [
        MisconfResult(
            namespace=r.namespace,
            message=r.message,
            policy_metadata=PolicyMetadata(
                id=r.id, type=r.type, title=r.title, severity=r.severity
            ),
        )
        for r in rpc_results
    ]


def from_rpc_misconfigurations(
    rpc_misconfs: Iterable[RpcMisconfiguration],
) -> list[Misconfiguration]:
    """Return misconfigurations from their RPC form; the layer is left empty."""
    return [
        Misconfiguration(
            file_type=m.file_type,
            file_path=m.file_path,
            successes=from_rpc_misconf_results(m.successes),
            warnings=from_rpc_misconf_results(m.warnings),
            failures=from_rpc_misconf_results(m.failures),
            exceptions=from_rpc_misconf_results(m.exceptions),
            layer=Layer(),
        )
        for m in rpc_misconfs
    ]


def to_misconf_results(results: Iterable[MisconfResult]) -> list[RpcMisconfResult]:
    """Return the RPC form of misconfiguration check results."""
    return [
        RpcMisconfResult(
            namespace=r.namespace,
            message=r.message,
            id=r.policy_metadata.id,
            type=r.policy_metadata.type,
            title=r.policy_metadata.title,
            severity=r.policy_metadata.severity,
        )
        for r in results
    ]


def from_rpc_put_artifact_request(req: PutArtifactRequest) -> ArtifactInfo:
    """Return the artifact info carried by a put-artifact request."""
    info = req.artifact_info
    if info is None:
        raise ValueError("empty artifact info")
    return ArtifactInfo(
        schema_version=info.schema_version,
        architecture=info.architecture,
        created=info.created,
        docker_version=info.docker_version,
        os=info.os,
        history_packages=from_rpc_pkgs(info.history_packages),
    )


def from_rpc_put_blob_request(req: PutBlobRequest) -> BlobInfo:
    """Return the blob info carried by a put-blob request."""
    info = req.blob_info
    if info is None:
        raise ValueError("empty blob info")
    return BlobInfo(
        schema_version=info.schema_version,
        digest=info.digest,
        diff_id=info.diff_id,
        os=from_rpc_os(info.os),
        package_infos=from_rpc_package_infos(info.package_infos),
        applications=from_rpc_applications(info.applications),
        misconfigurations=from_rpc_misconfigurations(info.misconfigurations),
        opaque_dirs=list(info.opaque_dirs),
        whiteout_files=list(info.whiteout_files),
    )


def to_rpc_artifact_info(image_id: str, image_info: ArtifactInfo) -> PutArtifactRequest:
    """Return a put-artifact request for ``image_info``."""
    if image_info.created is None:
        _log.warning("invalid timestamp: no creation time")
    return PutArtifactRequest(
        artifact_id=image_id,
        artifact_info=RpcArtifactInfo(
            schema_version=image_info.schema_version,
            architecture=image_info.architecture,
            created=image_info.created,
            docker_version=image_info.docker_version,
            os=image_info.os,
            history_packages=to_rpc_pkgs(image_info.history_packages),
        ),
    )


def to_rpc_blob_info(diff_id: str, blob_info: BlobInfo) -> PutBlobRequest:
    """Return a put-blob request for ``blob_info`` at the current schema version."""
    package_infos = [
        RpcPackageInfo(file_path=info.file_path, packages=to_rpc_pkgs(info.packages))
        for info in blob_info.package_infos
    ]
    applications = [
        RpcApplication(
            type=app.type,
            file_path=app.file_path,
            libraries=to_rpc_libraries(app.libraries),
        )
        for app in blob_info.applications
    ]
    misconfigurations = [
        RpcMisconfiguration(
            file_type=m.file_type,
            file_path=m.file_path,
            successes=to_misconf_results(m.successes),
            warnings=to_misconf_results(m.warnings),
            failures=to_misconf_results(m.failures),
            exceptions=to_misconf_results(m.exceptions),
        )
        for m in blob_info.misconfigurations
    ]
    return PutBlobRequest(
        diff_id=diff_id,
        blob_info=RpcBlobInfo(
            schema_version=BLOB_JSON_SCHEMA_VERSION,
            digest=blob_info.digest,
            diff_id=blob_info.diff_id,
            os=to_rpc_os(blob_info.os),
            package_infos=package_infos,
            applications=applications,
            misconfigurations=misconfigurations,
            opaque_dirs=list(blob_info.opaque_dirs),
            whiteout_files=list(blob_info.whiteout_files),
        ),
    )


def to_missing_blobs_request(image_id: str, layer_ids: Iterable[str]) -> MissingBlobsRequest:
    """Return a request asking which of ``layer_ids`` are missing from the cache."""
    return MissingBlobsRequest(artifact_id=image_id, blob_ids=list(layer_ids))


def to_rpc_scan_response(results: Iterable[Result], fos: OS | None) -> ScanResponse:
    """Return the scan response for ``results`` and the detected OS."""
    rpc_results = [
        RpcResult(
            target=r.target,
            result_class=r.result_class.value if r.result_class is not None else "",
            type=r.type,
            vulnerabilities=to_rpc_vulns(r.vulnerabilities),
            misconfigurations=to_rpc_misconfs(r.misconfigurations),
            packages=to_rpc_pkgs(r.packages),
        )
        for r in results
    ]
    return ScanResponse(os=to_rpc_os(fos), results=rpc_results)