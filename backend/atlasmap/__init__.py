"""atlasmap — lays out a catalog of related items as a clustered 2-D map."""

__version__ = "0.1.0"
