from faultline.cluster.readiness.timestamps import (
    TIMESTAMP_LENGTH as TIMESTAMP_LENGTH,
    first_timestamped_line as first_timestamped_line,
    last_timestamped_line as last_timestamped_line,
    logs_since_last_marker as logs_since_last_marker,
    starts_with_timestamp as starts_with_timestamp,
    timestamp_of as timestamp_of,
)
from faultline.cluster.readiness.wait_for_log_message_after import (
    WaitForLogMessageAfter as WaitForLogMessageAfter,
)
