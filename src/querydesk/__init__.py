"""QueryDesk - workspace core for natural-language data exploration."""

__version__ = "0.1.0"
