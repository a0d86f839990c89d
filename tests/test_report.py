from vulnscan.report import SCHEMA_VERSION, Report, Result, ResultClass, remove_layers
from vulnscan.types import (
    DetectedMisconfiguration,
    DetectedVulnerability,
    Layer,
    Package,
)

LAYER = Layer(
    digest="sha256:5216338b40a7b96416b8b9858974bbe4acc3096ee60acbc4dfb1ee02aecceb10",
    diff_id="sha256:b2a1a2d80bf0c747a4f6b0ca6af5eef23f043fcdb1ed4f3a3e750aef2dc68079",
)


def _result(target):
    return Result(
        target=target,
        packages=[Package(name="musl", version="1.2.3", layer=LAYER)],
        vulnerabilities=[
            DetectedVulnerability(vulnerability_id="CVE-2019-9999", pkg_name="vim", layer=LAYER)
        ],
        misconfigurations=[DetectedMisconfiguration(id="ID100", layer=LAYER)],
    )


def test_remove_layers_clears_every_layer():
    results = [_result("alpine:3.11"), _result("node-app/package-lock.json")]
    remove_layers(results)
    for result in results:
        assert [p.layer for p in result.packages] == [Layer()]
        assert [v.layer for v in result.vulnerabilities] == [Layer()]
        assert [m.layer for m in result.misconfigurations] == [Layer()]


def test_remove_layers_keeps_other_fields():
    results = [_result("alpine:3.11")]
    remove_layers(results)
    assert results[0].target == "alpine:3.11"
    assert results[0].packages[0].name == "musl"
    assert results[0].vulnerabilities[0].vulnerability_id == "CVE-2019-9999"
    assert results[0].misconfigurations[0].id == "ID100"


def test_report_defaults():
    report = Report(artifact_name="alpine:3.11")
    assert report.schema_version == SCHEMA_VERSION
    assert report.results == []
    assert report.metadata.os is None


def test_result_lists_are_independent():
    first, second = Result(), Result()
    first.packages.append(Package(name="musl"))
    assert second.packages == []


def test_result_class_from_value():
    assert ResultClass("os-pkgs") is ResultClass.OS_PKGS