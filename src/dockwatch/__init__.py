"""
dockwatch - live container registry and multiplexed log tailing.

Two terminal dashboards over a continuously reconciled view of the local
Docker daemon: `dockwatch ps` and `dockwatch logs`.
"""

__version__ = "0.1.0"
