from __future__ import annotations

"""Error code taxonomy for lookup failures.

The codes are embedded in structured log events and in the error text sent
back to the relay, so they should stay stable.
"""


class ErrorCode:
    TRANSIENT_SOURCE = "transient_source_error"
    STRUCTURAL_PARSE = "structural_parse_error"
    AUTOMATION_TIMEOUT = "automation_timeout"
    AUTOMATION_STEP = "automation_step_error"
    SESSION_UNAVAILABLE = "session_unavailable"
    INVALID_QUERY = "invalid_query"
    INTERNAL = "internal_error"


__all__ = ["ErrorCode"]
