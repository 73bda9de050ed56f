import logging
import os

DEFAULT_LOG_LEVEL = "WARNING"

logger = logging.getLogger("docx_stream")

# Create a custom logging level
DETAIL = 15
logging.addLevelName(DETAIL, "DETAIL")


# Create a custom log method for the "DETAIL" level
def detail(self, message, *args, **kws):
    if self.isEnabledFor(DETAIL):
        self._log(DETAIL, message, args, **kws)


# Add the custom log method to the logging.Logger class
logging.Logger.detail = detail  # type: ignore


def get_logger() -> logging.Logger:
    """The package logger with its level taken from the `LOG_LEVEL` environment variable.

    An unset or empty `LOG_LEVEL` falls back to `DEFAULT_LOG_LEVEL`.
    """
    level_name = os.environ.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL
    logger.setLevel(level_name.upper())
    return logger
