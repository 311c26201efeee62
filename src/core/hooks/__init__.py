"""Hook pacing Core — public API"""

from src.core.hooks.models import (
    DEFAULT_HOOK_SPECS,
    BlockReason,
    HookDecision,
    HookRecord,
    HookSpec,
    HookTrigger,
)
from src.core.hooks.arbiter import HookArbiter
from src.core.hooks.triggers import eligible_hooks

__all__ = [
    "DEFAULT_HOOK_SPECS",
    "BlockReason",
    "HookDecision",
    "HookRecord",
    "HookSpec",
    "HookTrigger",
    "HookArbiter",
    "eligible_hooks",
]
