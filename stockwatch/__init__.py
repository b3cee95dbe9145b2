"""stockwatch - stock search and quote API with provider failover."""

__version__ = "1.0.0"
