"""Prometheus rules linter.

Flags metric names referenced by recording/alerting rules that do not exist
in the Prometheus series index.
"""

__version__ = "0.1.0"
