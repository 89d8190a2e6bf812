from __future__ import annotations

import logging

LOGGER = logging.getLogger("genui.auth")
APP_VERSION = "0.1.0"

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
