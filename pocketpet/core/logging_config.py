# pocketpet/core/logging_config.py
import logging
import sys
import structlog


def setup_logging(log_level_str: str = "INFO", env_type: str = "dev"):
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    # Processors shared by structlog loggers and foreign (stdlib) log records
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if env_type == "dev":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    structlog_handler = logging.StreamHandler(sys.stdout)
    structlog_handler.setFormatter(formatter)
    root_logger.addHandler(structlog_handler)
    root_logger.setLevel(log_level)

    log = structlog.get_logger("logging_config")
    log.info("Logging configured", log_level=log_level_str,
             renderer=type(renderer).__name__)
