from __future__ import annotations

import sys
from pathlib import Path

import pytest
import requests
import vdf

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class FakeResponse:
    def __init__(self, payload=None, status=200, bad_json=False):
        self.payload = payload
        self.status_code = status
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self.bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    """Stands in for requests: answers appdetails lookups from a dict."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def get(self, url, params=None, timeout=None):
        appid = params["appids"]
        self.calls.append((url, appid, timeout))
        r = self.responses.get(appid)
        if isinstance(r, Exception):
            raise r
        if r is None:
            return FakeResponse({appid: {"success": False}})
        return r


def store_payload(appid: str, image: str) -> FakeResponse:
    return FakeResponse({appid: {"success": True, "data": {"header_image": image}}})


@pytest.fixture
def steam_root(tmp_path: Path) -> Path:
    root = tmp_path / "Steam"
    (root / "steamapps").mkdir(parents=True)
    return root


@pytest.fixture
def write_text():
    return _write


@pytest.fixture
def write_manifest():
    def _make(library: Path, appid, name, installdir=None, state_flags=4, **extra) -> Path:
        state = {
            "appid": str(appid),
            "name": name,
            "installdir": installdir if installdir is not None else name.replace(" ", ""),
            "StateFlags": str(state_flags),
        }
        state.update({k: str(v) for k, v in extra.items()})
        return _write(library / f"appmanifest_{appid}.acf", vdf.dumps({"AppState": state}, pretty=True))
    return _make


@pytest.fixture
def write_localconfig():
    def _make(root: Path, user_id, playtimes: dict) -> Path:
        apps = {str(appid): {"Playtime": str(minutes)} for appid, minutes in playtimes.items()}
        doc = {"UserLocalConfigStore": {"Software": {"Valve": {"Steam": {"apps": apps}}}}}
        path = root / "userdata" / str(user_id) / "config" / "localconfig.vdf"
        return _write(path, vdf.dumps(doc, pretty=True))
    return _make


@pytest.fixture
def write_libraryfolders():
    def _make(root: Path, paths) -> Path:
        folders = {str(i): {"path": str(p), "label": ""} for i, p in enumerate(paths)}
        doc = {"libraryfolders": folders}
        return _write(root / "steamapps" / "libraryfolders.vdf", vdf.dumps(doc, pretty=True))
    return _make


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def store_response():
    return store_payload
