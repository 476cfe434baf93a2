"""
Rollgate - feature flags and operational limits over refreshable configuration.

This package provides:
- A configuration provider with atomically swapped, versioned snapshots
- Feature flag evaluation with deterministic percentage rollout
- An HTTP router and a CLI exposing both
"""

__version__ = "1.0.0"
