"""Overlay Editor - watermark and signature compositing for images and PDFs."""

__version__ = "0.3.0"
