"""Content-addressed document identity.

The SHA-256 digest of a document's raw bytes is the sole deduplication key:
two uploads with identical bytes are the same logical document regardless of
their file names.  Hashing the bytes (not the extracted text) keeps the key
independent of extractor versions.
"""

from __future__ import annotations

import hashlib

# Read size used when hashing files from disk.
_READ_BLOCK = 1024 * 1024


class ContentHasher:
    """Computes hex-encoded SHA-256 digests.  Holds no state."""

    def hash(self, data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()

    def hash_file(self, path: str) -> str:
        """Hash a file on disk without loading it into memory at once."""
        digest = hashlib.sha256()
        with open(path, "rb") as fh:
            for block in iter(lambda: fh.read(_READ_BLOCK), b""):
                digest.update(block)
        return digest.hexdigest()
