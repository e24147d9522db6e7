import logging
import structlog
from app.config import get_settings

_settings = get_settings()

LOGGING_LEVEL = logging.getLevelNamesMapping().get(
    _settings.LOGGING_LEVEL.upper(),
    logging.INFO
)

# dict_tracebacks works with JSONRenderer, format_exc_info works with ConsoleRenderer
if _settings.ENV_MODE.lower() in ("local", "staging"):
    exception_processor = structlog.processors.format_exc_info
    renderer = [structlog.dev.ConsoleRenderer(colors=True)]
else:
    exception_processor = structlog.processors.dict_tracebacks
    renderer = [structlog.processors.JSONRenderer()]

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        exception_processor,
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        *renderer,
    ],
    cache_logger_on_first_use=True,
    wrapper_class=structlog.make_filtering_bound_logger(LOGGING_LEVEL),
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger()
