"""receipt-renamer: LLM-assisted receipt PDF renaming."""

from receipt_renamer.version import __version__

__all__ = ["__version__"]
