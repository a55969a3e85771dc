import logging


class Colors:
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    MAGENTA = "\033[35m"
    BOLD = "\033[1m"


class ColorFormatter(logging.Formatter):
    COLOR_MAP = {
        logging.DEBUG: Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.RED + Colors.BOLD,
    }

    def format(self, record):
        color = self.COLOR_MAP.get(record.levelno, Colors.RESET)
        if getattr(record, "deprecation", False):
            color = Colors.MAGENTA
        message = super().format(record)
        return f"{color}{message}{Colors.RESET}"


def setup_logger(name="winchoco", level=logging.INFO):
    logger = logging.getLogger(name)
    logger.setLevel(level)
    ch = logging.StreamHandler()
    ch.setLevel(level)
    formatter = ColorFormatter("%(message)s")
    ch.setFormatter(formatter)
    # Prevent adding multiple handlers in case of repeated calls
    if not logger.hasHandlers():
        logger.addHandler(ch)
    return logger


def set_level(level, name="winchoco"):
    """Change the level of the project logger and its handlers."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError("Unknown log level")
    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def log_deprecation(message: str, name="winchoco") -> None:
    logging.getLogger(name).warning("[DEPRECATED] %s", message, extra={"deprecation": True})
