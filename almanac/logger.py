import logging

from colorlog import ColoredFormatter

# sits between DEBUG and INFO; used for per-file identity decisions
TRACE_LEVEL = 15
logging.addLevelName(TRACE_LEVEL, "TRACE")


class LoggerEx(logging.Logger):
    def trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE_LEVEL):
            kwargs.setdefault("stacklevel", 2)
            self._log(TRACE_LEVEL, msg, args, **kwargs)


logging.setLoggerClass(LoggerEx)

# only the levels almanac emits
LOG_COLORS = {
    "DEBUG": "blue",
    "TRACE": "cyan",
    "INFO": "white",
    "WARNING": "yellow",
    "ERROR": "red",
}

formatter = ColoredFormatter(
    "%(log_color)s[%(asctime)s] [%(name)s:%(lineno)d] [%(levelname)s] %(message)s",
    datefmt="%d/%m/%y %H:%M:%S",
    log_colors=LOG_COLORS,
)


def get_logger(name: str) -> LoggerEx:
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach the coloured handler to the package logger once."""
    root = logging.getLogger("almanac")
    root.setLevel(level.upper())
    if not any(isinstance(h.formatter, ColoredFormatter) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(fmt=formatter)
        root.addHandler(handler)
    return root
