"""
Unit tests for the file stores.
"""

import pytest

from filestore import LocalFileStore, MemoryFileStore


class TestMemoryFileStore:

    def test_read_write(self):
        store = MemoryFileStore()
        store.write_bytes('a/b.bin', b'x')
        assert store.read_bytes('a/b.bin') == b'x'
        assert store.exists('a/b.bin')
        assert store.is_dir('a')

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            MemoryFileStore().read_bytes('nope')

    def test_paths_normalised(self):
        store = MemoryFileStore({'./dir/FILE': b'1'})
        assert store.read_bytes('dir\\FILE') == b'1'

    def test_listdir_only_direct_children(self):
        store = MemoryFileStore({'d/a': b'', 'd/b': b'', 'd/sub/c': b'', 'e': b''})
        assert store.listdir('d') == ['a', 'b']
        assert store.listdir('.') == ['e']

    def test_copy_and_move(self):
        store = MemoryFileStore({'a': b'data'})
        store.copy('a', 'b')
        store.move('a', 'c')
        assert not store.exists('a')
        assert store.read_bytes('b') == store.read_bytes('c') == b'data'


class TestLocalFileStore:

    def test_relative_to_root(self, tmp_path):
        store = LocalFileStore(tmp_path)
        store.write_bytes('GAME.EXE', b'MZ')
        assert (tmp_path / 'GAME.EXE').read_bytes() == b'MZ'

    def test_write_replaces_whole_file(self, tmp_path):
        (tmp_path / 'f').write_bytes(b'long old content')
        LocalFileStore(tmp_path).write_bytes('f', b'new')
        assert (tmp_path / 'f').read_bytes() == b'new'

    def test_failed_write_leaves_target(self, tmp_path):
        (tmp_path / 'f').write_bytes(b'old')
        with pytest.raises(TypeError):
            LocalFileStore(tmp_path).write_bytes('f', 'not bytes')
        assert (tmp_path / 'f').read_bytes() == b'old'
        assert [p.name for p in tmp_path.iterdir()] == ['f']

    def test_listdir_files_only(self, tmp_path):
        store = LocalFileStore(tmp_path)
        store.makedirs('backup/nested')
        store.write_bytes('backup/A', b'')
        assert store.listdir('backup') == ['A']
        assert store.is_dir('backup')

    def test_move_overwrites(self, tmp_path):
        store = LocalFileStore(tmp_path)
        store.write_bytes('a', b'new')
        store.write_bytes('b', b'old')
        store.move('a', 'b')
        assert store.read_bytes('b') == b'new'
        assert not store.exists('a')
