import logging

from adventureconnect.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process"""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("adventureconnect").setLevel(level)

    # SQL echo is controlled by DATABASE_ECHO, not by the app log level
    if not settings.DATABASE_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
