"""baseline - detect the snapshot a database was initialised from."""

__version__ = "0.1.0"
