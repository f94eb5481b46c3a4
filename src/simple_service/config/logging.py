"""structlog configuration for simple_service.

Library modules log through ``logging.getLogger(__name__)`` and never install
handlers themselves. Applications that want to see what units do call
:func:`configure_logging` once at startup. Only the ``simple_service`` logger
tree is touched; the root logger and other libraries keep their setup.

Two output modes, both on stderr:
- Human (default): console-formatted lines
- JSON (``log_json=True``): one JSON object per line
"""

from __future__ import annotations

import logging
import sys

import structlog

from simple_service.config.settings import get_settings

LOGGER_NAME = "simple_service"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool | None = None,
    log_json: bool | None = None,
) -> None:
    """Route ``simple_service`` log records and structlog events to stderr.

    Calling it again replaces the previous handler.

    Args:
        verbose: DEBUG output (validation passes, skipped operations,
            ``operation.complete`` events) instead of WARNING+.
            Defaults to ``ServiceSettings.verbose``.
        log_json: JSON lines instead of console output.
            Defaults to ``ServiceSettings.log_json``.
    """
    settings = get_settings()
    verbose = settings.verbose if verbose is None else verbose
    log_json = settings.log_json if log_json is None else log_json

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    library_logger = logging.getLogger(LOGGER_NAME)
    library_logger.handlers.clear()
    library_logger.addHandler(handler)
    library_logger.propagate = False
    library_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
