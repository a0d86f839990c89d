"""Scanning of an artifact's layers for vulnerable packages and misconfigurations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Protocol

from ..report import Result, ResultClass
from ..types import (
    GEM_SPEC,
    JAR,
    NODE_PKG,
    OS,
    PYTHON_PKG,
    SECURITY_CHECK_CONFIG,
    SECURITY_CHECK_VULNERABILITY,
    SEVERITY_NAMES,
    VULN_TYPE_LIBRARY,
    VULN_TYPE_OS,
    Application,
    ArtifactDetail,
    DetectedMisconfiguration,
    DetectedVulnerability,
    IacMetadata,
    Layer,
    MisconfResult,
    MisconfStatus,
    Misconfiguration,
    Package,
    ScanOptions,
    Severity,
)

_log = logging.getLogger(__name__)

_PKG_TARGETS = {
    PYTHON_PKG: "Python",
    GEM_SPEC: "Ruby",
    NODE_PKG: "Node.js",
    JAR: "Java",
}

_APPSHIELD_URL = "https://avd.aquasec.com/appshield/"
_TFSEC_DOCS = "https://tfsec.dev/docs/"


class _DetailError(Exception):
    """Raised by an applier together with the detail it could still build."""

    default_message = ""

    def __init__(self, detail: ArtifactDetail | None = None, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.detail = detail


class UnknownOSError(_DetailError):
    """The OS of the artifact could not be detected."""

    default_message = "unknown OS"


class NoPackagesDetectedError(_DetailError):
    """No OS packages were found in the artifact."""

    default_message = "no packages detected"


class UnsupportedOSError(Exception):
    """The OS family has no vulnerability data."""

    def __init__(self, message: str = "unsupported os") -> None:
        super().__init__(message)


class LocalScanError(Exception):
    """A local scan failed."""


class Applier(Protocol):
    def apply_layers(self, artifact_id: str, blob_ids: list[str]) -> ArtifactDetail: ...


class OspkgDetector(Protocol):
    def detect(
        self,
        image_name: str,
        os_family: str,
        os_name: str,
        created: datetime | None,
        pkgs: list[Package],
    ) -> tuple[list[DetectedVulnerability], bool]: ...


class LibraryDetector(Protocol):
    def detect(self, lib_type: str, libraries: list[Package]) -> list[DetectedVulnerability]: ...


def merge_pkgs(pkgs: Iterable[Package], pkgs_from_commands: Iterable[Package]) -> list[Package]:
    """Add packages from commands whose names are not already among ``pkgs``."""
    merged = list(pkgs)
    known = {pkg.name for pkg in merged}
    merged.extend(pkg for pkg in pkgs_from_commands if pkg.name not in known)
    return merged


def _to_detected_misconfiguration(
    res: MisconfResult,
    default_severity: Severity,
    status: MisconfStatus,
    layer: Layer,
) -> DetectedMisconfiguration:
    meta = res.policy_metadata
    try:
        severity = Severity.from_name(meta.severity)
    except ValueError:
        _log.warning("severity must be %s, but %s", SEVERITY_NAMES, meta.severity)
        severity = default_severity

    message = res.message.strip() or "No issues found"

    references = list(meta.references)
    primary_url = ""
    if res.namespace.startswith("appshield."):
        primary_url = _APPSHIELD_URL + meta.id.lower()
        references.append(primary_url)
    elif "tfsec" in meta.type:
        primary_url = next((ref for ref in references if ref.startswith(_TFSEC_DOCS)), "")

    return DetectedMisconfiguration(
        id=meta.id,
        type=meta.type,
        title=meta.title,
        description=meta.description,
        message=message,
        resolution=meta.recommended_actions,
        namespace=res.namespace,
        query=res.query,
        severity=str(severity),
        primary_url=primary_url,
        references=references,
        status=status,
        layer=layer,
        traces=list(res.traces),
        iac_metadata=IacMetadata(
            resource=res.iac_metadata.resource,
            start_line=res.iac_metadata.start_line,
            end_line=res.iac_metadata.end_line,
        ),
    )


class LocalScanner:
    """Scans an artifact's applied layers with local detectors."""

    def __init__(
        self,
        applier: Applier,
        ospkg_detector: OspkgDetector,
        library_detector: LibraryDetector,
    ) -> None:
        self._applier = applier
        self._ospkg_detector = ospkg_detector
        self._library_detector = library_detector

    def scan(
        self,
        target: str,
        artifact_key: str,
        blob_keys: Iterable[str],
        options: ScanOptions,
    ) -> tuple[list[Result], OS | None]:
        """Return the results of the scan and the detected OS."""
        try:
            detail = self._applier.apply_layers(artifact_key, list(blob_keys))
        except UnknownOSError as exc:
            _log.debug("OS is not detected and vulnerabilities in OS packages are not detected.")
            detail = exc.detail or ArtifactDetail()
        except NoPackagesDetectedError as exc:
            _log.warning(
                "No OS package is detected. Make sure you haven't deleted any files "
                "that contain information about the installed packages."
            )
            _log.warning('e.g. files under "/lib/apk/db/", "/var/lib/dpkg/" and "/var/lib/rpm"')
            detail = exc.detail or ArtifactDetail()
        except Exception as exc:
            raise LocalScanError(f"failed to apply layers: {exc}") from exc

        results: list[Result] = []

        if SECURITY_CHECK_VULNERABILITY in options.security_checks:
            try:
                vuln_results, eosl = self._check_vulnerabilities(target, detail, options)
            except Exception as exc:
                raise LocalScanError(f"failed to detect vulnerabilities: {exc}") from exc
            if detail.os is not None:
                detail.os.eosl = eosl
            results.extend(vuln_results)

        if SECURITY_CHECK_CONFIG in options.security_checks:
            results.extend(self._misconfs_to_results(detail.misconfigurations))

        return results, detail.os

    def _check_vulnerabilities(
        self, target: str, detail: ArtifactDetail, options: ScanOptions
    ) -> tuple[list[Result], bool]:
        results: list[Result] = []
        eosl = False

        if VULN_TYPE_OS in options.vuln_type:
            try:
                result, eosl = self._scan_os_pkgs(target, detail, options)
            except Exception as exc:
                raise LocalScanError(f"unable to scan OS packages: {exc}") from exc
            if result is not None:
                results.append(result)

        if VULN_TYPE_LIBRARY in options.vuln_type:
            try:
                results.extend(self._scan_library(detail.applications, options))
            except Exception as exc:
                raise LocalScanError(f"failed to scan application libraries: {exc}") from exc

        return results, eosl

    def _scan_os_pkgs(
        self, target: str, detail: ArtifactDetail, options: ScanOptions
    ) -> tuple[Result | None, bool]:
        if detail.os is None:
            _log.debug("Detected OS: unknown")
            return None, False
        _log.info("Detected OS: %s", detail.os.family)

        pkgs = list(detail.packages)
        if options.scan_removed_packages:
            pkgs = merge_pkgs(pkgs, detail.history_packages)

        try:
            result, eosl = self._detect_vulns_in_os_pkgs(
                target, detail.os.family, detail.os.name, pkgs
            )
        except Exception as exc:
            raise LocalScanError(f"failed to scan OS packages: {exc}") from exc
        if result is None:
            return None, eosl

        if options.list_all_packages:
            result.packages = sorted(pkgs, key=lambda pkg: pkg.name)

        return result, eosl

    def _detect_vulns_in_os_pkgs(
        self, target: str, os_family: str, os_name: str, pkgs: list[Package]
    ) -> tuple[Result | None, bool]:
        if not os_family:
            return None, False
        try:
            vulns, eosl = self._ospkg_detector.detect("", os_family, os_name, None, pkgs)
        except UnsupportedOSError:
            return None, False
        except Exception as exc:
            raise LocalScanError(f"failed vulnerability detection of OS packages: {exc}") from exc

        result = Result(
            target=f"{target} ({os_family} {os_name})",
            vulnerabilities=list(vulns),
            result_class=ResultClass.OS_PKGS,
            type=os_family,
        )
        return result, eosl

    def _scan_library(self, apps: list[Application], options: ScanOptions) -> list[Result]:
        _log.info("Number of language-specific files: %d", len(apps))
        results: list[Result] = []
        printed_types: set[str] = set()
        for app in apps:
            if not app.libraries:
                continue

            if app.type not in printed_types:
                _log.info("Detecting %s vulnerabilities...", app.type)
                printed_types.add(app.type)

            _log.debug(
                "Detecting library vulnerabilities, type: %s, path: %s", app.type, app.file_path
            )
            try:
                vulns = self._library_detector.detect(app.type, app.libraries)
            except Exception as exc:
                raise LocalScanError(
                    f"failed vulnerability detection of libraries: {exc}"
                ) from exc

            target = app.file_path or _PKG_TARGETS.get(app.type, "")
            result = Result(
                target=target,
                vulnerabilities=list(vulns),
                result_class=ResultClass.LANG_PKGS,
                type=app.type,
            )
            if options.list_all_packages:
                result.packages = list(app.libraries)
            results.append(result)
        results.sort(key=lambda r: r.target)
        return results

    def _misconfs_to_results(self, misconfs: list[Misconfiguration]) -> list[Result]:
        _log.info("Detected config files: %d", len(misconfs))
        results: list[Result] = []
        for misconf in misconfs:
            _log.debug("Scanned config file: %s", misconf.file_path)
            groups = (
                (misconf.failures, Severity.CRITICAL, MisconfStatus.FAILURE),
                (misconf.warnings, Severity.MEDIUM, MisconfStatus.FAILURE),
                (misconf.successes, Severity.UNKNOWN, MisconfStatus.PASSED),
                (misconf.exceptions, Severity.UNKNOWN, MisconfStatus.EXCEPTION),
            )
            detected = [
                _to_detected_misconfiguration(res, severity, status, misconf.layer)
                for items, severity, status in groups
                for res in items
            ]
            results.append(
                Result(
                    target=misconf.file_path,
                    result_class=ResultClass.CONFIG,
                    type=misconf.file_type,
                    misconfigurations=detected,
                )
            )
        results.sort(key=lambda r: r.target)
        return results