"""Shelf-space layout engine for retail planograms"""
__version__ = "0.1.0"
