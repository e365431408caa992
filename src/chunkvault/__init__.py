"""chunkvault - passphrase-encrypted chunked file storage."""

__version__ = "0.1.0"
