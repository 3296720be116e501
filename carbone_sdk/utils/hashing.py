"""
Content-hash template identifiers.

The render service addresses templates by the SHA-256 of their bytes.
Computing the same identifier locally lets the SDK render a known
template without uploading it again.

IMPORTANT DESIGN RULE:
- compute_template_id hashes bytes, and bytes only.
- Failures are raised, never returned as a missing identifier.
"""

import hashlib
import os
from pathlib import Path
from typing import Union

from carbone_sdk.core.errors import CarboneError, CarboneErrorKind

PathLike = Union[str, "os.PathLike[str]"]


def compute_template_id(content: Union[bytes, bytearray]) -> str:
    """
    Return the lowercase hex SHA-256 digest of ``content``.

    Pure and deterministic: identical bytes always yield the identical
    64-character identifier.
    """
    if not isinstance(content, (bytes, bytearray)):
        raise TypeError(
            "compute_template_id expects bytes, "
            f"got {type(content).__name__}"
        )

    return hashlib.sha256(content).hexdigest()


def template_id_from_path(path: PathLike) -> str:
    """
    Read a template file fully and return its content-hash identifier.

    Raises:
        CarboneError(HASHING_FAILED) if the file cannot be read.
    """
    try:
        content = Path(path).read_bytes()
    except OSError as exc:
        raise CarboneError(
            CarboneErrorKind.HASHING_FAILED,
            f"failed to generate template ID: {exc}",
        ) from exc

    return compute_template_id(content)
