#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Application entrypoint for SekundeBrain.

This file is intentionally minimal. It configures logging and boots the
Textual UI app.
"""
from __future__ import annotations

import asyncio
import os

from sekundebrain.logs import setup_logging
from sekundebrain.settings import config_dir
from sekundebrain.ui import SekundeBrainApp


def main() -> None:
    """Run the Textual application."""
    setup_logging(
        level=os.environ.get("SEKUNDEBRAIN_LOG_LEVEL", "INFO"),
        log_file=config_dir() / "sekundebrain.log",
        console=False,
    )
    asyncio.run(SekundeBrainApp().run_async())


if __name__ == "__main__":
    main()
