"""Wire formats for implementor fragments and sidebar catalogs.

- legacy: the self-executing script fragments emitted by doc builds
- structured: plain JSON / YAML mappings with the same field semantics
"""
