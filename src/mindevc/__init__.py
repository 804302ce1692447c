"""
mindevc - reproducible tool bootstrap for development containers.

Downloads tool archives into a content-addressed cache, extracts them per
architecture and publishes the resulting binaries through stable symlinks.
"""
__version__ = "0.1.0"
