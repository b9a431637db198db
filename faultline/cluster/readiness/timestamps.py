import re


TIMESTAMP_LENGTH = 24
TIMESTAMP_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{1,4}"
)


def starts_with_timestamp(line: str) -> bool:
    return TIMESTAMP_PATTERN.match(line.lstrip()) is not None


def timestamp_of(line: str, length: int = TIMESTAMP_LENGTH) -> str:
    """
    Fixed width timestamp prefix of a line. Lexicographic order of the
    prefixes is chronological order of the lines.
    """
    return line.lstrip()[:length]


def last_timestamped_line(logs: str) -> str | None:
    for line in reversed(logs.splitlines()):
        if starts_with_timestamp(line):
            return line

    return None


def first_timestamped_line(logs: str) -> str | None:
    for line in logs.splitlines():
        if starts_with_timestamp(line):
            return line

    return None


def logs_since_last_marker(logs: str, marker: str) -> str:
    """
    Output from the start of the line holding the last ``marker``
    occurrence. The whole log when the marker never appears.
    """
    marker_index = logs.rfind(marker)
    if marker_index < 0:
        return logs

    line_start = logs.rfind("\n", 0, marker_index) + 1
    return logs[line_start:]
