import pytest

from vulnscan.report import Metadata, Report, Result
from vulnscan.scanner.scan import ScanError, Scanner
from vulnscan.types import (
    OS,
    ArtifactReference,
    DetectedMisconfiguration,
    DetectedVulnerability,
    ImageMetadata,
    Layer,
    Package,
    ScanOptions,
)

ARTIFACT_ID = "sha256:e7d92cdc71feacf90708cb59182d0df1b911f8ae022d29e8e95d75ca6a99776a"
BLOB_ID = "sha256:5216338b40a7b96416b8b9858974bbe4acc3096ee60acbc4dfb1ee02aecceb10"
DIFF_ID = "sha256:b2a1a2d80bf0c747a4f6b0ca6af5eef23f043fcdb1ed4f3a3e750aef2dc68079"


class FakeArtifact:
    def __init__(self, reference=None, error=None):
        self.reference = reference
        self.error = error

    def inspect(self):
        if self.error is not None:
            raise self.error
        return self.reference


class FakeDriver:
    def __init__(self, results=(), os_found=None, error=None):
        self.results = list(results)
        self.os_found = os_found
        self.error = error
        self.calls = []

    def scan(self, target, artifact_key, blob_keys, options):
        self.calls.append((target, artifact_key, list(blob_keys), options))
        if self.error is not None:
            raise self.error
        return self.results, self.os_found


def driver_results():
    return [
        Result(
            target="alpine:3.11",
            vulnerabilities=[
                DetectedVulnerability(
                    vulnerability_id="CVE-2019-9999",
                    pkg_name="vim",
                    installed_version="1.2.3",
                    fixed_version="1.2.4",
                    layer=Layer(digest=BLOB_ID, diff_id=DIFF_ID),
                )
            ],
        ),
        Result(
            target="node-app/package-lock.json",
            vulnerabilities=[
                DetectedVulnerability(
                    vulnerability_id="CVE-2019-11358",
                    pkg_name="jquery",
                    installed_version="3.3.9",
                    fixed_version=">=3.4.0",
                )
            ],
            type="npm",
        ),
    ]


def test_happy_path():
    reference = ArtifactReference(
        name="alpine:3.11",
        type="container_image",
        id=ARTIFACT_ID,
        blob_ids=[BLOB_ID],
        image_metadata=ImageMetadata(
            id="sha256:e389ae58922402a7ded319e79f06ac428d05698d8e61ecbe88d2cf850e42651d",
            diff_ids=["sha256:9a5d14f9f5503e55088666beef7e85a8d9625d4fa7418e2fe269e9c54bcb853c"],
            repo_tags=["alpine:3.11"],
            repo_digests=[
                "alpine@sha256:0bd0e9e03a022c3b0226667621da84fc9bf562a9056130424b5bfbd8bcb0397f"
            ],
        ),
    )
    options = ScanOptions(vuln_type=["os"])
    driver = FakeDriver(
        driver_results(), OS(family="alpine", name="3.10", eosl=True)
    )
    report = Scanner(driver, FakeArtifact(reference)).scan_artifact(options)

    assert report == Report(
        schema_version=2,
        artifact_name="alpine:3.11",
        artifact_type="container_image",
        metadata=Metadata(
            os=OS(family="alpine", name="3.10", eosl=True),
            image_id="sha256:e389ae58922402a7ded319e79f06ac428d05698d8e61ecbe88d2cf850e42651d",
            diff_ids=["sha256:9a5d14f9f5503e55088666beef7e85a8d9625d4fa7418e2fe269e9c54bcb853c"],
            repo_tags=["alpine:3.11"],
            repo_digests=[
                "alpine@sha256:0bd0e9e03a022c3b0226667621da84fc9bf562a9056130424b5bfbd8bcb0397f"
            ],
        ),
        results=driver_results(),
    )
    assert driver.calls == [("alpine:3.11", ARTIFACT_ID, [BLOB_ID], options)]


def test_layers_removed_for_non_image_artifacts():
    results = [
        Result(
            target="go.sum",
            packages=[Package(name="a", layer=Layer(diff_id=DIFF_ID))],
            vulnerabilities=[DetectedVulnerability(vulnerability_id="X", layer=Layer(digest=BLOB_ID))],
            misconfigurations=[DetectedMisconfiguration(id="Y", layer=Layer(diff_id=DIFF_ID))],
        )
    ]
    reference = ArtifactReference(name="/repo", type="filesystem", id=ARTIFACT_ID)
    report = Scanner(FakeDriver(results), FakeArtifact(reference)).scan_artifact(ScanOptions())
    result = report.results[0]
    assert result.packages[0].layer == Layer()
    assert result.vulnerabilities[0].layer == Layer()
    assert result.misconfigurations[0].layer == Layer()
    assert report.artifact_type == "filesystem"
    assert report.metadata.os is None


def test_sad_path_inspect_error():
    driver = FakeDriver()
    scanner = Scanner(driver, FakeArtifact(error=RuntimeError("error")))
    with pytest.raises(ScanError, match="failed analysis"):
        scanner.scan_artifact(ScanOptions(vuln_type=["os"]))
    assert driver.calls == []


def test_sad_path_scan_error():
    reference = ArtifactReference(name="alpine:3.11", id=ARTIFACT_ID, blob_ids=[BLOB_ID])
    driver = FakeDriver(error=RuntimeError("error"))
    scanner = Scanner(driver, FakeArtifact(reference))
    with pytest.raises(ScanError, match="scan failed"):
        scanner.scan_artifact(ScanOptions(vuln_type=["os"]))