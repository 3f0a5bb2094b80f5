"""ChainHeart donation ledger and charity lifecycle engine."""

__version__ = "0.1.0"
