# vulnscan

`vulnscan` is the core of a vulnerability and misconfiguration scanner.
It has no third-party dependencies. It does not inspect images or hold
vulnerability data itself. You supply the pieces that do, and `vulnscan`
turns what they find into a structured report:

- an artifact, with `inspect()` returning a `vulnscan.types.ArtifactReference`;
- a layer applier, with `apply_layers(artifact_id, blob_ids)` returning an
  `ArtifactDetail`;
- an OS package detector, with
  `detect(image_name, os_family, os_name, created, pkgs)` returning
  `(vulnerabilities, eosl)`;
- a library detector, with `detect(lib_type, libraries)` returning a list of
  vulnerabilities.

## Installation

```
pip install .
```

To install with the test dependencies:

```
pip install .[test]
```

## Modules

### `vulnscan.types`

The data model:

- packages, layers, OS descriptions, blob and artifact info;
- `DetectedVulnerability` and `DetectedMisconfiguration`, with `MisconfStatus`;
- the `Severity` scale, `compare_severity_string` and `sort_by_severity`;
- `ScanOptions`, plus `new_vuln_type` and `new_security_check`, which map
  unknown names to `"unknown"`.

`DockerConfig.from_env(environ)` reads registry settings from these variables:

- `VULNSCAN_USERNAME`
- `VULNSCAN_PASSWORD`
- `VULNSCAN_REGISTRY_TOKEN`
- `VULNSCAN_INSECURE`
- `VULNSCAN_NON_SSL`

It reads the process environment when `environ` is None.
`get_docker_option(timeout, environ)` turns that configuration into a
`DockerOption`. It raises `ValueError` when a boolean variable cannot be
parsed.

### `vulnscan.report`

- `Report`, `Metadata`, `Result` and `ResultClass`.
- `remove_layers(results)` clears layer data in place.

### `vulnscan.scanner.local`

`LocalScanner(applier, ospkg_detector, library_detector).scan(target, artifact_key, blob_keys, options)`
returns `(results, os)`:

- OS package results are targeted as `"<target> (<family> <name>)"`.
- Library results and config results are each sorted by target.
- The applier may raise `UnknownOSError` or `NoPackagesDetectedError`, carrying
  a partial `detail`; the scan then goes on with that detail.
- A detector may raise `UnsupportedOSError`; OS results are then skipped.
- Any other failure is raised as `LocalScanError`.
- `merge_pkgs` adds removed packages whose names are not already present. It
  is used when `scan_removed_packages` is set.

### `vulnscan.scanner.scan`

`Scanner(driver, artifact).scan_artifact(options)` inspects the artifact,
passes it to a driver (a `LocalScanner` or a `RemoteScanner`) and builds a
`Report`:

- Layers are removed unless the artifact type is `"container_image"`.
- Failures are raised as `ScanError`.

### `vulnscan.scanner.versions`

`format_version` and `format_src_version` render a package version as
`epoch:version-release`. The epoch is omitted when it is 0, and the release is
omitted when it is empty.

### `vulnscan.rpc`

- `messages` holds the wire messages, `RpcSeverity`, `ErrorCode` and
  `RpcError`.
- `convert` converts between wire messages and the data model.
- `retry(operation, max_retries, initial_interval)` calls `operation` again,
  with exponential back-off, only while it raises an `RpcError` with code
  `UNAVAILABLE`.
- `client.RemoteScanner(custom_headers, client)` is a driver. It sends a
  `ScanRequest` through `client.scan(request, headers)` and raises
  `RemoteScanError` on failure.
- `client.with_custom_headers` drops all headers when one of them is reserved
  (`Accept`, `Content-Type`, `Twirp-Version`).

### `vulnscan.utils`

- `default_cache_dir()` returns the default cache directory.
- `cache_dir()` and `set_cache_dir(directory)` get and set the cache
  directory in use.
- `copy_file(src, dst)` copies a regular file and returns the number of bytes
  copied.

## Example

```python
from vulnscan.scanner.local import LocalScanner
from vulnscan.scanner.scan import Scanner
from vulnscan.types import ScanOptions

local = LocalScanner(applier, ospkg_detector, library_detector)
scanner = Scanner(local, artifact)
report = scanner.scan_artifact(
    ScanOptions(vuln_type=["os", "library"], security_checks=["vuln"])
)
for result in report.results:
    print(result.target, len(result.vulnerabilities))
```

## What this package does not do

- There is no command-line program.
- There is no scan server or cache server. The `rpc` modules cover only the
  client side and the message model. No HTTP transport is included; the
  `client` passed to `RemoteScanner` must provide one.
- There is no vulnerability database and no database updating.
- No artifact, applier or detector implementations are included; they must be
  supplied.