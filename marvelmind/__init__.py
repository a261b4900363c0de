"""Records, library front end, device tracking and commands for Marvelmind positioning systems."""

__version__ = "0.1.0"