"""Archive codec layer.

This module packs working directories into zip files and back.
It is the only place that touches the zip file format.
"""
