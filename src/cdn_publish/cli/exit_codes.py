"""Exit-code constants used by the CLI layer."""

from __future__ import annotations

SUCCESS: int = 0
"""Command completed without error."""

GENERAL_ERROR: int = 1
"""Any failure: usage errors, CdnPublishError, Ctrl+C or an unexpected crash."""
