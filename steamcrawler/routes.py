from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from .launch import launch_title
from .scanning import CatalogError, filter_entries, get_catalog, sort_entries
from .settings import Settings

bp = Blueprint("steamcrawler", __name__)


def _settings() -> Settings:
    return current_app.config["CRAWLER_SETTINGS"]


@bp.get("/api/catalog")
def catalog():
    try:
        result = get_catalog(_settings())
    except CatalogError as e:
        return jsonify({"ok": False, "error": str(e)}), 500

    games = filter_entries(result.entries, request.args.get("q", ""))
    games = sort_entries(games, request.args.get("sort", "name"))
    return jsonify({
        "ok": True,
        "count": len(games),
        "roots": [str(r) for r in result.roots],
        "games": [g.to_dict() for g in games],
    })


@bp.post("/api/launch/<appid>")
def launch(appid):
    ok = launch_title(appid)
    return jsonify({"ok": ok}), 200 if ok else 500
