import logging
import sys


def setup_logging(level: str = "INFO", format_string: str = None) -> None:
    """Настройка корневого логгера (один раз при старте приложения)"""
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=format_string,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
