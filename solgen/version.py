"""Version of the solgen package (PEP 440)."""

# Bump this when publishing
__version__ = "0.1.0"
