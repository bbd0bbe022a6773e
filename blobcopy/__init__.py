"""
blobcopy — Mirror objects between blob stores, with optional deterministic
encryption of object content and object keys.
"""

__version__ = "0.1.0"
