from __future__ import annotations

import os
from pathlib import Path

import pytest

from steamcrawler.keyvalues import parse_text
from steamcrawler.libraries import declared_library_paths, resolve_libraries
from steamcrawler.locate import find_install_roots
from steamcrawler.utils import LINUX, normalize_path


def test_primary_only_without_descriptor(steam_root: Path) -> None:
    assert resolve_libraries(steam_root) == [steam_root / "steamapps"]


def test_primary_only_when_descriptor_is_broken(steam_root: Path, write_text) -> None:
    write_text(steam_root / "steamapps" / "libraryfolders.vdf", '"libraryfolders"\n{\n\t"0"\n')
    assert resolve_libraries(steam_root) == [steam_root / "steamapps"]


def test_declared_libraries_that_exist(tmp_path: Path, steam_root: Path, write_libraryfolders) -> None:
    extra = tmp_path / "SteamLibrary"
    extra.mkdir()
    write_libraryfolders(steam_root, [steam_root, extra, tmp_path / "unplugged"])

    libraries = resolve_libraries(steam_root)
    assert libraries == [steam_root / "steamapps", extra / "steamapps"]


def test_root_declared_again_appears_once(steam_root: Path, write_libraryfolders) -> None:
    write_libraryfolders(steam_root, [steam_root, str(steam_root) + "/"])
    assert resolve_libraries(steam_root) == [steam_root / "steamapps"]


def test_old_format_and_section_casing(tmp_path: Path, steam_root: Path, write_text) -> None:
    extra = tmp_path / "Old Library"
    extra.mkdir()
    write_text(
        steam_root / "steamapps" / "libraryfolders.vdf",
        '"LibraryFolders"\n{\n'
        '\t"TimeNextStatsReport"\t"1700000000"\n'
        '\t"ContentStatsID"\t"-123"\n'
        f'\t"1"\t"{extra.as_posix()}"\n'
        '}\n',
    )
    assert resolve_libraries(steam_root) == [steam_root / "steamapps", extra / "steamapps"]


def test_declared_paths_skip_non_index_keys() -> None:
    doc = parse_text(
        '"libraryfolders"\n{\n'
        '\t"contentstatsid"\t"42"\n'
        '\t"0"\n\t{\n\t\t"path"\t"/games/a"\n\t}\n'
        '\t"1"\n\t{\n\t\t"label"\t"no path"\n\t}\n'
        '\t"2"\t"/games/b"\n'
        '}\n'
    )
    assert declared_library_paths(doc) == ["/games/a", "/games/b"]


def test_declared_paths_without_section() -> None:
    assert declared_library_paths(parse_text('"other"\t"x"\n')) == []


def test_normalize_path_for_windows_host() -> None:
    assert normalize_path(r"D:\\Games\\SteamLibrary", windows=True) == r"D:\Games\SteamLibrary"
    assert normalize_path("D:/Games/SteamLibrary", windows=True) == r"D:\Games\SteamLibrary"
    assert normalize_path(r"\\nas\games\SteamLibrary", windows=True) == r"\\nas\games\SteamLibrary"


def test_normalize_path_for_posix_host() -> None:
    assert normalize_path(r"\mnt\games\SteamLibrary", windows=False) == "/mnt/games/SteamLibrary"
    assert normalize_path("/mnt/games/SteamLibrary/ ", windows=False) == "/mnt/games/SteamLibrary"


def test_unc_library_path_survives_parsing() -> None:
    doc = parse_text(
        '"libraryfolders"\n{\n'
        '\t"1"\n\t{\n\t\t"path"\t"\\\\\\\\nas\\\\games\\\\SteamLibrary"\n\t}\n'
        '}\n'
    )
    (raw,) = declared_library_paths(doc)
    assert raw == r"\\nas\games\SteamLibrary"
    assert normalize_path(raw, windows=True) == r"\\nas\games\SteamLibrary"


def test_symlinked_root_lists_its_library_once(tmp_path: Path, write_libraryfolders) -> None:
    share = tmp_path / ".local" / "share" / "Steam"
    (share / "steamapps").mkdir(parents=True)
    link = tmp_path / ".steam" / "steam"
    link.parent.mkdir()
    try:
        os.symlink(share, link, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")
    write_libraryfolders(share, [share.as_posix()])

    (root,) = find_install_roots(LINUX, env={}, home=tmp_path)
    assert root == link
    assert resolve_libraries(root) == [link / "steamapps"]
