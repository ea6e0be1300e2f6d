"""Remote object key derivation.

Functions
---------
- derive_key  — map a session identifier to its canonical object key
"""
from __future__ import annotations

import posixpath

ARCHIVE_SUFFIX = ".zip"


def derive_key(remote_data_path: str, session_id: str) -> str:
    """Return the object key for ``session_id`` under ``remote_data_path``.

    Backslashes are converted to forward slashes before joining so the key
    is identical on every host OS.  Leading separators on the identifier
    are dropped, so the key always stays under ``remote_data_path``.  The
    identifier is not otherwise checked.

    Parameters
    ----------
    remote_data_path:
        Base path inside the bucket.
    session_id:
        Logical session name.

    Returns
    -------
    str
        ``<remote_data_path>/<session_id>.zip`` with normalized separators.

    Example
    -------
    >>> derive_key("prod/auth", "work-phone")
    'prod/auth/work-phone.zip'
    """
    base = remote_data_path.replace("\\", "/")
    name = f"{session_id}{ARCHIVE_SUFFIX}".replace("\\", "/").lstrip("/")
    return posixpath.normpath(posixpath.join(base, name))


__all__ = ["ARCHIVE_SUFFIX", "derive_key"]
