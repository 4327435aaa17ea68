"""
stockflow: bulk product ingestion for the inventory dashboard.

Uploads are staged row by row with a validation verdict, then promoted into
the product catalog with inventory snapshots.
"""

__version__ = "0.1.0"
