"""
Patch catalog: an ordered list of edits to a game installation.

Operations:
  AddEntry      copy entry `name` from archive `src` into archive `dst`
                (or, with raw=True, wrap the loose file `src` as entry `name`)
  RemoveEntry   drop entry `name` from `archive`
  ReplaceEntry  overwrite entry `name` in `dst` with the entry of the same
                name from `src`
  BytePatch     exact byte search/replace in `file`

Catalog file (JSON):
  {"operations": [
      {"op": "replace", "src": "FIX.BNK", "dst": "GFX.BNK", "name": "LOGO"},
      {"op": "patch", "file": "GAME.EXE", "search": "4e 65 77", "replace": "4e 65 77",
       "description": "Fix typo", "post_md5": "..."}
  ]}

run_catalog applies operations strictly in order and stops at the first
failure. Every file is backed up before its first modification.
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import bytepatch
from backup import BackupGuard
from bnk import Archive, ArchiveEntry
from errors import BnkError, ValidationError
from filestore import FileStore, LocalFileStore, is_plain_filename
from logging_utils import get_logger

logger = get_logger(__name__)


def calculate_md5(data):
    return hashlib.md5(data).hexdigest()


# =============================================================================
# OPERATIONS
# =============================================================================

@dataclass
class AddEntry:
    src: str
    dst: str
    name: str
    raw: bool = False

    @property
    def target(self):
        return self.dst


@dataclass
class RemoveEntry:
    archive: str
    name: str

    @property
    def target(self):
        return self.archive


@dataclass
class ReplaceEntry:
    src: str
    dst: str
    name: str

    @property
    def target(self):
        return self.dst


@dataclass
class BytePatch:
    file: str
    search: bytes
    replace: bytes
    description: str = ''
    pre_md5: Optional[str] = None
    post_md5: Optional[str] = None

    @property
    def target(self):
        return self.file


Operation = Union[AddEntry, RemoveEntry, ReplaceEntry, BytePatch]

OP_NAMES = {
    AddEntry: 'add',
    RemoveEntry: 'remove',
    ReplaceEntry: 'replace',
    BytePatch: 'patch',
}


# =============================================================================
# LOADING
# =============================================================================

def _field(item: Dict[str, Any], key: str, index: int):
    if key not in item:
        raise ValidationError(f"operation {index} ({item.get('op')}) is missing '{key}'")
    return item[key]


def _hex(item: Dict[str, Any], key: str, index: int) -> bytes:
    value = _field(item, key, index)
    try:
        return bytes.fromhex(value)
    except (TypeError, ValueError):
        raise ValidationError(f"operation {index}: '{key}' is not a hex string") from None


def check_target(path) -> None:
    """Modified files must sit directly in the game directory; backups are keyed by filename."""
    if not is_plain_filename(path):
        raise ValidationError(f"target {path!r} must be a plain filename in the game directory")


def parse_operation(item: Dict[str, Any], index: int = 0) -> Operation:
    operation = _build_operation(item, index)
    check_target(operation.target)
    return operation


def _build_operation(item: Dict[str, Any], index: int) -> Operation:
    op = item.get('op')
    if op == 'add':
        return AddEntry(_field(item, 'src', index), _field(item, 'dst', index),
                        _field(item, 'name', index), raw=bool(item.get('raw', False)))
    if op == 'remove':
        return RemoveEntry(_field(item, 'archive', index), _field(item, 'name', index))
    if op == 'replace':
        return ReplaceEntry(_field(item, 'src', index), _field(item, 'dst', index),
                            _field(item, 'name', index))
    if op == 'patch':
        return BytePatch(_field(item, 'file', index), _hex(item, 'search', index),
                         _hex(item, 'replace', index),
                         description=item.get('description', ''),
                         pre_md5=item.get('pre_md5'), post_md5=item.get('post_md5'))
    raise ValidationError(f"operation {index}: unknown op {op!r}")


def parse_catalog(document: Dict[str, Any]) -> List[Operation]:
    items = document.get('operations')
    if not isinstance(items, list):
        raise ValidationError("catalog has no 'operations' list")
    return [parse_operation(item, index) for index, item in enumerate(items)]


def load_catalog(path) -> List[Operation]:
    with open(path, 'r', encoding='utf-8') as f:
        return parse_catalog(json.load(f))


# =============================================================================
# APPLYING
# =============================================================================

def apply_operation(op: Operation, store: FileStore) -> Optional[str]:
    """
    Apply one operation. Raises BnkError or OSError on failure.

    Returns:
        A warning to report alongside a successful step, or None.
    """
    check_target(op.target)
    warning = None
    if isinstance(op, AddEntry):
        if op.raw:
            entry = ArchiveEntry.create(op.name, store.read_bytes(op.src))
        else:
            entry = Archive.load(op.src, store).clone_entry(op.name)
        archive = Archive.load(op.dst, store)
        archive.add_entry(entry)
        archive.save(store=store)

    elif isinstance(op, RemoveEntry):
        archive = Archive.load(op.archive, store)
        archive.remove_entry(op.name)
        archive.save(store=store)

    elif isinstance(op, ReplaceEntry):
        entry = Archive.load(op.src, store).clone_entry(op.name)
        archive = Archive.load(op.dst, store)
        archive.replace_entry(op.name, entry)
        archive.save(store=store)

    elif isinstance(op, BytePatch):
        data = store.read_bytes(op.file)
        if op.pre_md5:
            actual = calculate_md5(data)
            if actual != op.pre_md5.lower():
                warning = f"MD5 before patch is {actual}, expected {op.pre_md5}"
                logger.warning("%s %s, patching anyway", op.file, warning)
        patched, offset = bytepatch.patch_bytes(data, op.search, op.replace)
        if op.post_md5:
            actual = calculate_md5(patched)
            if actual != op.post_md5.lower():
                raise ValidationError(
                    f"{op.file} MD5 after patch would be {actual}, expected {op.post_md5}"
                )
        store.write_bytes(op.file, patched)
        logger.info("Patched %s at 0x%X (%d bytes)", op.file, offset, len(op.replace))

    else:
        raise ValidationError(f"unsupported operation {op!r}")

    return warning


def run_catalog(operations: List[Operation], store: Optional[FileStore] = None,
                guard: Optional[BackupGuard] = None,
                restore_first: bool = True) -> Tuple[bool, List[Dict[str, Any]]]:
    """
    Apply a catalog in order, failing fast.

    Args:
        operations:    Operations to apply.
        store:         File store rooted at the game directory.
        guard:         Backup guard; one sharing `store` is created if omitted.
        restore_first: Roll back any earlier run before applying.

    Returns:
        Tuple of (success: bool, results: list)
        Each result has 'op', 'target' and 'status' ('OK' or 'FAILED');
        failed results also carry 'error' (exception class) and 'message',
        and steps that went ahead despite a pre-patch MD5 mismatch carry 'warning'.
    """
    store = store or LocalFileStore()
    guard = guard or BackupGuard(store)

    if restore_first:
        restored = guard.restore_all()
        if restored:
            logger.info("Rolled back %d file(s) from an earlier run", len(restored))

    results = []
    for op in operations:
        result = {'op': OP_NAMES[type(op)], 'target': op.target, 'status': 'OK'}
        results.append(result)
        try:
            if not guard.has_backup(op.target):
                guard.backup(op.target)
            warning = apply_operation(op, store)
            if warning:
                result['warning'] = warning
        except (BnkError, OSError) as e:
            result['status'] = 'FAILED'
            result['error'] = type(e).__name__
            result['message'] = str(e)
            logger.error("%s %s failed: %s", result['op'], op.target, e)
            return False, results

    return True, results
