"""
Configuration key naming convention.

    services.<app>.features.<name>.enabled
    services.<app>.features.<name>.rolloutPercentage
    services.<app>.limits.<name>
    services.<app>.cache.<name>

Every key the evaluator reads is built by config_key().
"""

FEATURES = "features"
LIMITS = "limits"
CACHE = "cache"

ENABLED = "enabled"
ROLLOUT_PERCENTAGE = "rolloutPercentage"


def config_key(prefix: str, name: str, suffix: str | None = None) -> str:
    """Join a namespace prefix, a name and an optional suffix into a dotted key."""
    parts = [prefix, name] if suffix is None else [prefix, name, suffix]
    return ".".join(parts)


def namespace_prefix(app_name: str) -> str:
    """Root prefix for one application: ``services.<app_name>``."""
    return config_key("services", app_name)


def feature_key(namespace: str, feature_name: str, suffix: str) -> str:
    return config_key(f"{namespace}.{FEATURES}", feature_name, suffix)


def limit_key(namespace: str, name: str) -> str:
    return config_key(f"{namespace}.{LIMITS}", name)


def cache_key(namespace: str, name: str) -> str:
    return config_key(f"{namespace}.{CACHE}", name)


def feature_name_from_key(namespace: str, key: str) -> str | None:
    """Return the feature name if ``key`` is a feature ``.enabled`` key, else None."""
    head = f"{namespace}.{FEATURES}."
    tail = f".{ENABLED}"
    if not (key.startswith(head) and key.endswith(tail)):
        return None
    name = key[len(head) : -len(tail)]
    return name or None
