"""
Product Lookup Service

Resolves scanned barcodes, SKUs and GTINs against a cached, versioned
product dataset.
"""

__version__ = "1.0.0"
