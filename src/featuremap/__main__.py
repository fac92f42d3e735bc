"""Module entrypoint for ``python -m featuremap``."""

from __future__ import annotations

from featuremap.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
