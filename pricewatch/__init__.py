"""
PriceWatch

Price alert evaluation and triggering engine.
"""

__version__ = "0.1.0"
