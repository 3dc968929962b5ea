import logging

LOG_TRACE_LEVEL = logging.DEBUG // 2
logging.addLevelName(LOG_TRACE_LEVEL, "TRACE")

class CustomLogger(logging.Logger):
    def trace(self, message, *args, **kwargs):
        if self.isEnabledFor(LOG_TRACE_LEVEL):
            self._log(LOG_TRACE_LEVEL, message, args, **kwargs)

logging.Logger.trace = CustomLogger.trace  # type: ignore[attr-defined]
logging.setLoggerClass(CustomLogger)


def get_logger(name: str = __name__) -> CustomLogger:
    """Return a logger that also understands ``trace``."""
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_secret(text: str, secret: str | None) -> str:
    """Hide ``text`` from logs when it is exactly the secret."""
    if secret and text == secret:
        return "*" * 8
    return text
