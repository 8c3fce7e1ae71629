"""
Engines for Compactor

Format-specific compression strategies live in engines.compression.
"""
