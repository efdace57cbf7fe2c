import logging
from loguru import logger

from app.core.config import settings


# Loggers that bring their own handlers and would otherwise bypass loguru
THIRD_PARTY_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine")


class InterceptHandler(logging.Handler):
    """Routes records from the standard logging module into loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame.f_back and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging():
    level = "DEBUG" if settings.debug else "INFO"

    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(level)

    for name in THIRD_PARTY_LOGGERS:
        third_party = logging.getLogger(name)
        third_party.handlers = []
        third_party.propagate = True

    # SQL statements only when explicitly asked for
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING)

    logger.add(
        settings.log_file,
        rotation="500 MB",
        retention="90 days",
        compression="zip",
        level=level,
        backtrace=True,
        diagnose=settings.debug,
    )
