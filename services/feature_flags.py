# User value: This file lets operators roll portal behavior out gradually without a redeploy.
import os

BOOL_FLAG_VALUES = {"1", "0", "true", "false", "yes", "no", "on", "off"}


def _flag(name: str, default: bool = False) -> bool:
    raw = str(os.getenv(name, "1" if default else "0")).strip().lower()
    return raw in {"1", "true", "yes", "on"}


FEATURE_QUERY_CACHE = _flag("FEATURE_QUERY_CACHE", True)
FEATURE_ACCEPT_RESTRICTIONS = _flag("FEATURE_ACCEPT_RESTRICTIONS", True)
FEATURE_LIVE_STREAMS = _flag("FEATURE_LIVE_STREAMS", True)

FEATURE_FLAG_NAMES = (
    "FEATURE_QUERY_CACHE",
    "FEATURE_ACCEPT_RESTRICTIONS",
    "FEATURE_LIVE_STREAMS",
)


# User value: keeps dashboards fast by sharing one fetch of the same job list across screens.
def is_query_cache_enabled() -> bool:
    return FEATURE_QUERY_CACHE


# User value: blocks new job acceptance while completion reports are overdue.
def is_accept_restriction_enabled() -> bool:
    return FEATURE_ACCEPT_RESTRICTIONS


def is_live_streams_enabled() -> bool:
    return FEATURE_LIVE_STREAMS
