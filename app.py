#!/usr/bin/env python3
import logging
import os
import sys
from typing import Optional

from steamcrawler import create_app, BIND, PORT

def _resolve_settings_file() -> Optional[str]:
    if len(sys.argv) >= 2:
        return os.path.abspath(sys.argv[1])
    return os.environ.get("SETTINGS_FILE") or None

if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(_resolve_settings_file())
    app.run(host=BIND, port=PORT, debug=False)
