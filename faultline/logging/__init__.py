from .config import (
    LoggingConfig as LoggingConfig,
    StreamType as StreamType,
)
from .models import (
    Entry as Entry,
    Log as Log,
    LogLevel as LogLevel,
    LogLevelName as LogLevelName,
)
from .streams import (
    Logger as Logger,
    LoggerStream as LoggerStream,
)
