"""flora-admin - optimistic relation editing for the Flora IM back-office."""

__version__ = "0.1.0"
