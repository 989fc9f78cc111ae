import logging
from logging.handlers import RotatingFileHandler

from .config import settings

_configured = False


def configure_logging() -> None:
    global _configured

    logger = logging.getLogger()
    logger.setLevel(settings.log_level.upper())

    # lifespan may run more than once per process (tests, reload)
    if _configured:
        return

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file
    if settings.log_file:
        fh = RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # uvicorn's access log duplicates the request middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    _configured = True
