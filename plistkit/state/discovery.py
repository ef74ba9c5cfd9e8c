"""Finding data documents on disk."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Union

from ..core.document import expand_path
from ..core.log import get_logger

logger = get_logger(__name__)

DATA_SUFFIX = ".plist"


def find_data_documents(path: Union[str, Path]) -> List[Path]:
    """List the data documents at ``path``.

    A file is returned as is. A directory is walked recursively for
    ``*.plist`` files, skipping names that start with ``_`` (such as the
    default settings document).
    """
    root = expand_path(path)
    if root.is_file():
        return [root]
    if not root.is_dir():
        logger.warning("%s is neither a file nor a directory", root)
        return []
    found: List[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            if filename.startswith("_") or not filename.endswith(DATA_SUFFIX):
                continue
            found.append(Path(dirpath) / filename)
    return sorted(found)
