"""Named integer lists served over XML-RPC, with an operation log and snapshot recovery."""

__version__ = "0.1.0"