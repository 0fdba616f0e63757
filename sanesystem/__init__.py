"""Record and verify snapshots of files, command output and processes."""

__version__ = "0.1.0"
__all__ = ["__version__"]