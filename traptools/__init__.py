"""Read, decode and dump TRaP randomization metadata from ELF binaries."""

__version__ = "0.1.0"