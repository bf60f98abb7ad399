"""Data models shared by the registry, the wire formats and the loaders."""
