"""ZIP archive expansion."""

from __future__ import annotations

import io
import logging
import zipfile
from typing import List, Tuple

LOG = logging.getLogger(__name__)


def expand_archive(data: bytes) -> List[Tuple[str, bytes]]:
    """
    Expand a ZIP archive into (filename, bytes) pairs.

    Directory entries are skipped; archive order is preserved.
    """
    members: List[Tuple[str, bytes]] = []
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            members.append((info.filename, archive.read(info)))
    LOG.debug("Expanded archive into %d files", len(members))
    return members
