"""Scene, document and settings models."""
