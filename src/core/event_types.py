"""Event type constants"""


class EventTypes:
    """Event type strings"""

    # pack_service
    PACK_OPENED = "pack_opened"
    SESSION_STARTED = "session_started"
    SESSION_RESET = "session_reset"

    # hook payloads (executor side)
    HOOK_FIRED = "hook_fired"
