"""HIV burden and multidimensional poverty analysis."""

__version__ = "0.1.0"
