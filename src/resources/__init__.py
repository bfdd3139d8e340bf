"""Archive resource management layer.

This module exposes locator-addressed typed resources over a working
directory that is unpacked from, and packed back into, a zip archive.
"""
