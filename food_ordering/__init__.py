"""
                Food Ordering Backend

Catalog management and order lifecycle for a food delivery service:
stock reservation at placement, restocking on cancellation, delivery
marking and retention of completed orders.
"""

__version__ = "1.0.0"
