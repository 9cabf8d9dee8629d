"""
Tests for the command line entry points.
"""

import json
import sys

import pytest

import main
from bnk import Archive


@pytest.fixture
def game_dir(tmp_path, store):
    game = tmp_path / 'game'
    game.mkdir()
    for name, data in store.files.items():
        (game / name).write_bytes(data)
    return game


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / 'catalog.json'
    path.write_text(json.dumps({'operations': [
        {'op': 'replace', 'src': 'FIX.BNK', 'dst': 'GFX.BNK', 'name': 'LOGO'},
        {'op': 'patch', 'file': 'GAME.EXE', 'search': '52 65 63 69 65 76 65',
         'replace': '52 65 63 65 69 76 65', 'description': 'Recieve -> Receive'},
    ]}))
    return path


class TestApply:

    def test_apply_and_restore(self, game_dir, catalog_file, capsys):
        pristine = (game_dir / 'GFX.BNK').read_bytes()

        assert main.apply_catalog(game_dir, catalog_file)
        assert 'ALL EDITS APPLIED' in capsys.readouterr().out
        assert Archive.load(game_dir / 'GFX.BNK').clone_entry('LOGO').payload == b'new-logo'
        assert b'Receive' in (game_dir / 'GAME.EXE').read_bytes()

        assert main.restore_game(game_dir)
        assert (game_dir / 'GFX.BNK').read_bytes() == pristine
        assert b'Recieve' in (game_dir / 'GAME.EXE').read_bytes()

    def test_apply_failure_reported(self, game_dir, tmp_path, capsys):
        catalog = tmp_path / 'bad.json'
        catalog.write_text(json.dumps({'operations': [
            {'op': 'remove', 'archive': 'GFX.BNK', 'name': 'MISSING'},
            {'op': 'remove', 'archive': 'GFX.BNK', 'name': 'ICON'},
        ]}))

        assert not main.apply_catalog(game_dir, catalog)
        out = capsys.readouterr().out
        assert 'NotFoundError' in out
        assert '1 edit(s) not attempted' in out

    def test_missing_game_dir(self, tmp_path, catalog_file):
        assert not main.apply_catalog(tmp_path / 'nope', catalog_file)

    def test_unreadable_catalog(self, game_dir, tmp_path):
        catalog = tmp_path / 'broken.json'
        catalog.write_text('{not json')
        assert not main.apply_catalog(game_dir, catalog)

    def test_pre_md5_warning_printed(self, game_dir, tmp_path, capsys):
        catalog = tmp_path / 'warn.json'
        catalog.write_text(json.dumps({'operations': [
            {'op': 'patch', 'file': 'GAME.EXE', 'search': '52 65 63 69 65 76 65',
             'replace': '52 65 63 65 69 76 65', 'pre_md5': '0' * 32},
        ]}))

        assert main.apply_catalog(game_dir, catalog)
        assert 'WARNING: MD5 before patch' in capsys.readouterr().out


class TestVerify:

    def test_lists_targets(self, game_dir, catalog_file, capsys):
        assert main.verify_game(game_dir, catalog_file)
        out = capsys.readouterr().out
        assert 'GFX.BNK' in out
        assert 'GAME.EXE' in out


class TestMain:

    def test_restore_exit_code(self, game_dir, monkeypatch):
        monkeypatch.setattr(sys, 'argv', ['main.py', 'restore', str(game_dir)])
        with pytest.raises(SystemExit) as exc:
            main.main()
        assert exc.value.code == 0

    def test_usage(self, monkeypatch):
        monkeypatch.setattr(sys, 'argv', ['main.py', 'frobnicate', 'x'])
        with pytest.raises(SystemExit) as exc:
            main.main()
        assert exc.value.code == 1
