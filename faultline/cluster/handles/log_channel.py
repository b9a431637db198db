from enum import Enum


class LogChannel(Enum):
    DEBUG = "DEBUG"
    QUERY = "QUERY"
