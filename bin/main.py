#!/usr/bin/env python

import os
from pathlib import Path

from libefris.cli import app

LIBEFRIS_APP_HOME = Path(__file__).parent.parent.resolve().absolute()
os.environ["LIBEFRIS_APP_HOME"] = str(LIBEFRIS_APP_HOME)
os.chdir(LIBEFRIS_APP_HOME)

os.environ.setdefault("LIBEFRIS_CONFIG_FILE", str(LIBEFRIS_APP_HOME / "conf/config.toml"))
os.environ.setdefault("LIBEFRIS_LOGGING_CONFIG_FILE", str(LIBEFRIS_APP_HOME / "conf/logging_py.json"))
os.environ.setdefault("LIBEFRIS_SECRETS_PATH", str(LIBEFRIS_APP_HOME / "secrets"))  # for storing secrets

if __name__ == "__main__":
    app()
