"""Allow ``python -m cdn_publish`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m cdn_publish`` behaves identically to the
``cdn-publish`` console script.
"""

from __future__ import annotations

from cdn_publish.cli.app import cli

if __name__ == "__main__":
    cli()
