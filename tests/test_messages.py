from datetime import datetime, timezone

import pytest

from vulnscan.rpc.messages import (
    ErrorCode,
    MissingBlobsResponse,
    PutArtifactRequest,
    RpcArtifactInfo,
    RpcError,
    RpcLayer,
    RpcPackage,
    RpcResult,
    RpcSeverity,
    RpcVulnerability,
    ScanRequest,
    ScanResponse,
)
from vulnscan.types import Severity


def test_severity_names_match_domain_severity():
    converted = [RpcSeverity(int(s)) for s in Severity]
    assert [s.name for s in converted] == [s.name for s in Severity]


@pytest.mark.parametrize("value, name", [(2, "MEDIUM"), (4, "CRITICAL")])
def test_severity_str_is_name(value, name):
    assert str(RpcSeverity(value)) == name


def test_error_code_round_trip():
    for code in ErrorCode:
        assert ErrorCode(code.value) is code


def test_unauthenticated_maps_to_401():
    code = ErrorCode(ErrorCode.UNAUTHENTICATED.value)
    assert code.http_status == 401


def test_every_code_has_error_status():
    statuses = [ErrorCode(code.value).http_status for code in ErrorCode]
    assert statuses
    assert all(400 <= status < 600 for status in statuses)


def test_rpc_error_carries_code_and_message():
    err = RpcError(ErrorCode.UNAVAILABLE, "down")
    assert err.code is ErrorCode.UNAVAILABLE
    assert err.msg == "down"
    assert "down" in str(err)
    with pytest.raises(RpcError):
        raise err


def test_default_lists_are_not_shared():
    first = ScanResponse()
    second = ScanResponse()
    first.results.append(RpcResult(target="a"))
    assert second.results == []
    assert first.os is None


def test_vulnerability_defaults():
    vuln = RpcVulnerability()
    assert vuln.severity is RpcSeverity.UNKNOWN
    assert vuln.layer is None
    assert vuln.cvss == {}
    assert vuln.published_date is None


def test_messages_compare_by_value():
    created = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    a = PutArtifactRequest(
        artifact_id="sha256:abc",
        artifact_info=RpcArtifactInfo(schema_version=1, created=created, os="linux"),
    )
    b = PutArtifactRequest(
        artifact_id="sha256:abc",
        artifact_info=RpcArtifactInfo(schema_version=1, created=created, os="linux"),
    )
    assert a == b
    b.artifact_info.os = "windows"
    assert a != b and a.artifact_info.os == "linux"


def test_package_layer_is_optional():
    pkg = RpcPackage(name="musl", layer=RpcLayer(diff_id="sha256:def"))
    assert pkg.layer.diff_id == "sha256:def"
    assert RpcPackage(name="musl").layer is None


def test_scan_request_and_missing_blobs_defaults():
    req = ScanRequest(target="alpine:3.11", blob_ids=["sha256:1"])
    assert req.options is None
    assert req.blob_ids == ["sha256:1"]
    resp = MissingBlobsResponse()
    assert resp.missing_artifact is False
    assert resp.missing_blob_ids == []