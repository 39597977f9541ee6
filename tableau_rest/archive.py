"""Extraction of the datasource document from a packaged archive.

A packaged datasource (.tdsx) is a zip file containing exactly one entry,
the .tds XML document.
"""

from __future__ import annotations

import io
import zipfile

from .errors import TableauArchiveError


def extract_embedded_document(data: bytes) -> str:
    """Return the text of the single entry in a zip archive.

    Raises:
        TableauArchiveError: If ``data`` is not a zip archive or does not
            contain exactly one entry.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            entries = archive.infolist()
            if len(entries) != 1:
                raise TableauArchiveError(
                    "A .tdsx file is expected to be a zip file containing "
                    "exactly one file, the .tds datasource"
                )
            content = archive.read(entries[0])
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as err:
        raise TableauArchiveError(f"Not a datasource archive: {err}") from err
    return content.decode("utf-8", errors="replace")
