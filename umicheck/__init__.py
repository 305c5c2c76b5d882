"""Check whether the UMI from each read header also occurs in the read sequence."""

__version__ = "0.1.3"
__all__ = ["__version__"]