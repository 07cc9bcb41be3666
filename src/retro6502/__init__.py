"""
retro6502 - MOS 6502 instruction-execution core.
"""
__version__ = "0.1.0"
