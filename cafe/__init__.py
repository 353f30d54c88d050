"""
                Cafe Ordering System

Menu browsing, order placement and order status tracking for a single
cafe, with an admin view for menu management and order lifecycle.
Records live in an external key-value store and authentication is
delegated to an external identity provider.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
