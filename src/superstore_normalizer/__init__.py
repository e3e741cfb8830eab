"""Superstore transaction table normalizer.

Loads retail transaction exports, removes duplicate order lines, derives
shipping duration and customer tier, and reports descriptive aggregates.
"""

__version__ = "0.1.0"
