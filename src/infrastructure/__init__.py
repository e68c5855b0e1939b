"""Infrastructure adapters implementing the domain ports.

- sql: SQLAlchemy site/region sources and area stores
- geojson: file-based site/region sources for offline runs
- memory: in-process area store
"""
