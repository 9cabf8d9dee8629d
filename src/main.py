"""
Wildfire game data patcher

Applies a catalog of corrective edits (asset bank fixes and executable byte
patches) to an installed game. Every modified file is backed up first; each
run begins by rolling back the previous one, so running twice gives the same
result as running once.

Commands:
  python main.py apply <game_dir> <catalog.json>      Apply all catalog edits
  python main.py restore <game_dir>                   Roll back to the backups
  python main.py verify <game_dir> <catalog.json>     Show MD5 of patched files
  python main.py from-iso <image.iso> <folder> <dest> Copy pristine files from the CD
"""

import sys
from pathlib import Path

from backup import BackupGuard
from catalog import BytePatch, calculate_md5, load_catalog, run_catalog
from errors import BnkError
from filestore import LocalFileStore
from isoextract import extract_iso_directory


def print_banner():
    print("╔══════════════════════════════════════════╗")
    print("║        Wildfire game data patcher        ║")
    print("╚══════════════════════════════════════════╝")
    print()


def open_game_dir(game_dir):
    """Returns (store, guard) for game_dir, or None if it is not a directory."""
    path = Path(game_dir)
    if not path.is_dir():
        print(f"ERROR: Directory not found: {game_dir}")
        return None
    store = LocalFileStore(path)
    return store, BackupGuard(store)


def apply_catalog(game_dir, catalog_path):
    opened = open_game_dir(game_dir)
    if opened is None:
        return False
    store, guard = opened

    try:
        operations = load_catalog(catalog_path)
    except (BnkError, OSError, ValueError) as e:
        print(f"ERROR: Could not read catalog {catalog_path}: {e}")
        return False

    print(f"Target directory: {game_dir}")
    print(f"Applying {len(operations)} edit(s) ...")
    print()

    success, results = run_catalog(operations, store, guard)
    for r in results:
        if r['status'] == 'OK':
            print(f"  [OK] {r['op']:<8} {r['target']}")
            if r.get('warning'):
                print(f"       WARNING: {r['warning']}")
        else:
            print(f"  [!!] {r['op']:<8} {r['target']} ({r['error']})")
            print(f"       {r['message']}")
    print()

    if success:
        print("ALL EDITS APPLIED ✅")
    else:
        skipped = len(operations) - len(results)
        print(f"PATCHING FAILED ❌ ({skipped} edit(s) not attempted)")
        print("Run the restore command to roll back the files changed so far.")
    return success


def restore_game(game_dir):
    opened = open_game_dir(game_dir)
    if opened is None:
        return False
    _, guard = opened

    restored = guard.restore_all()
    if restored:
        for filename in restored:
            print(f"  Restored {filename}")
        print(f"RESTORED {len(restored)} FILE(S) ✅")
    else:
        print("Nothing to restore.")
    return True


def verify_game(game_dir, catalog_path):
    """
    Print the MD5 of every file the catalog touches. Files with an expected
    post-patch MD5 are checked against it.
    """
    opened = open_game_dir(game_dir)
    if opened is None:
        return False
    store, _ = opened

    operations = load_catalog(catalog_path)
    expected = {}
    for op in operations:
        if isinstance(op, BytePatch) and op.post_md5:
            expected[op.file] = op.post_md5.lower()
        else:
            expected.setdefault(op.target, None)

    all_ok = True
    print("Checking patched files ...")
    for target, md5 in expected.items():
        if not store.exists(target):
            print(f"  MISSING: {target} ❌")
            all_ok = False
            continue
        actual = calculate_md5(store.read_bytes(target))
        if md5 is None:
            print(f"  {target} - {actual}")
        elif actual == md5:
            print(f"  {target} - PASSED MD5 CHECK ✅")
        else:
            print(f"  {target} - FAILED MD5 CHECK ❌ ({actual})")
            all_ok = False
    return all_ok


def main():
    """
    1. Roll back any earlier run from the backup directory
    2. Back up each file before it is first modified
    3. Apply the catalog in order, stopping at the first failure
    """
    print_banner()

    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)

    command = sys.argv[1]
    args = sys.argv[2:]

    try:
        if command == 'apply' and len(args) == 2:
            ok = apply_catalog(*args)
        elif command == 'restore' and len(args) == 1:
            ok = restore_game(*args)
        elif command == 'verify' and len(args) == 2:
            ok = verify_game(*args)
        elif command == 'from-iso' and len(args) == 3:
            files = extract_iso_directory(*args)
            print(f"\nSuccess! Extracted {len(files)} file(s) to: {Path(args[2]).absolute()}")
            ok = True
        else:
            print(__doc__)
            ok = False
    except (BnkError, OSError) as e:
        print(f"ERROR: {e}")
        ok = False

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
