"""Shared fixtures for archive, patch and backup tests."""

import pytest

from bnk import Archive, ArchiveEntry
from filestore import MemoryFileStore


def make_archive(*items, source_path=None):
    """Build an Archive from (name, payload) pairs."""
    return Archive([ArchiveEntry.create(name, payload) for name, payload in items],
                   source_path=source_path)


def bank_bytes(*items):
    return make_archive(*items).to_bytes()


@pytest.fixture
def store():
    """In-memory game directory with two banks and an executable."""
    return MemoryFileStore({
        'GFX.BNK': bank_bytes(('LOGO', b'old-logo'), ('TITLE', b'title'), ('ICON', b'icon')),
        'FIX.BNK': bank_bytes(('LOGO', b'new-logo'), ('SPLASH', b'splash')),
        'GAME.EXE': b'MZ\x90\x00Recieve data\x00\x74\x10\x00\x00',
    })
