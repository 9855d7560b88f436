from .registry import NORMALIZED_FIELDS, SourceDescriptor, SourceRegistry, default_sources

__all__ = ["NORMALIZED_FIELDS", "SourceDescriptor", "SourceRegistry", "default_sources"]
