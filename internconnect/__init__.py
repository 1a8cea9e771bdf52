"""InternConnect - internship marketplace for students and companies."""

__version__ = "1.0.0"
