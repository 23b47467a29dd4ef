"""cdn-publish: command-line client for CDN edge storage and pull zones.

Publishes versioned packages with bounded-concurrency, checksum-verified
batch uploads and rollback on partial failure.
"""

from cdn_publish.version import __version__

__all__: list[str] = ["__version__"]
