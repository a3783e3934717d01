"""Cleanup of temporary files written while processing one article."""

import logging
import os
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


def release_resources(linkhash: str, storage_path: Union[str, Path]) -> int:
    """Delete every entry in *storage_path* whose name starts with *linkhash*.

    Best effort: each failed deletion is logged as a warning and skipped, and
    a missing directory means there is nothing to do.

    Returns:
        The number of files removed.
    """
    if not linkhash:
        return 0

    logger.debug("Releasing resources for %s in %s", linkhash, storage_path)
    try:
        entries = list(os.scandir(storage_path))
    except FileNotFoundError:
        logger.debug("Storage directory %s does not exist", storage_path)
        return 0
    except OSError as exc:
        logger.warning("Unable to list storage directory %s: %s", storage_path, exc)
        return 0

    removed = 0
    for entry in entries:
        if not entry.name.startswith(linkhash):
            continue
        try:
            os.remove(entry.path)
        except OSError as exc:
            logger.warning("Unable to remove temp file: %s (%s)", entry.name, exc)
            continue
        removed += 1
    return removed
