"""Structured logging via structlog.

The engine itself logs through `logging.getLogger(__name__)`. Hosts that
embed it (a CLI, an editor server, a CI step) call `configure_structlog()`
once at startup so those stdlib records and any `structlog.get_logger()`
calls share one output format.

Renderer selection:
  debug=True:  `ConsoleRenderer` for local runs.
  debug=False: `JSONRenderer` for machine-parseable logs in CI.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from baseline_scan.core.config import get_settings


def configure_structlog(debug: Optional[bool] = None) -> None:
    """Configure structlog and the stdlib bridge.

    debug defaults to Settings.debug (BASELINE_SCAN_DEBUG). Calling
    multiple times is safe; the last call wins.
    """
    if debug is None:
        debug = get_settings().debug

    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # Findings go to stdout in most hosts; keep logs on stderr.
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        force=True,
    )
