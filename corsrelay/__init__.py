"""CORS relay failover: pick a live relay and rewrite requests into its shape."""

__version__ = "1.0.0"
