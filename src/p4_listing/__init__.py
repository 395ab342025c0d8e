"""List Perforce depot files and their metadata from tagged command output."""

__version__ = "0.1.0"
