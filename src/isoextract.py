"""
Pull pristine game files out of the original CD image.

Used when an installation was modified without a backup and restore_all()
has nothing to roll back.
"""

from pathlib import Path
from typing import List

import pycdlib

from logging_utils import get_logger

logger = get_logger(__name__)


def extract_iso_directory(iso_path, iso_folder, dest_root) -> List[Path]:
    '''
    Extract a directory of the ISO and its contents, including subdirs,
    into dest_root. Version suffixes (";1") are dropped from file names.

    Returns:
        Paths of the extracted files.
    '''
    iso = pycdlib.PyCdlib()
    iso.open(str(iso_path))

    # Standardize the internal path (e.g., /DATA)
    iso_dir = f"/{str(iso_folder).strip('/')}"
    extracted = []

    def walk_and_extract(current_iso_dir, current_local_dir):
        current_local_dir.mkdir(parents=True, exist_ok=True)

        for child in iso.list_children(iso_path=current_iso_dir):
            identifier = child.file_identifier().decode('utf-8')
            name = identifier.split(';')[0]
            if name in ['.', '..']:
                continue

            child_iso_path = f"{current_iso_dir.rstrip('/')}/{identifier}"
            child_local_path = current_local_dir / name

            if child.is_dir():
                walk_and_extract(child_iso_path, child_local_path)
            else:
                logger.info("Extracting: %s", name)
                with open(child_local_path, 'wb') as f:
                    iso.get_file_from_iso_fp(f, iso_path=child_iso_path)
                extracted.append(child_local_path)

    try:
        walk_and_extract(iso_dir, Path(dest_root))
    finally:
        iso.close()

    return extracted
