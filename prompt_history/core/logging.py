import logging

from prompt_history.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = None) -> None:
    """Настройка корневого логгера приложения"""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)

    # SQL пишет движок при SQL_ECHO, дублировать через корневой логгер не нужно
    logging.getLogger("sqlalchemy.engine").propagate = not settings.sql_echo
