"""Reading projects from cargo metadata and writing feature selections back."""

from .metadata import load_document
from .save import ManifestWriter

__all__ = ["ManifestWriter", "load_document"]
