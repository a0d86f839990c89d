"""Local and artifact-level scanners and version formatting helpers."""