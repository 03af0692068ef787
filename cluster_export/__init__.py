"""Cluster Export: export items by cluster and aggregate export summary reports."""

__version__ = "0.1.0"
