"""SheetFlow: import one worksheet as a key/value mapping or a list of records."""

__version__ = "0.1.0"
