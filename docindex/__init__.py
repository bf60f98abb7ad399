"""docindex — merged implementor and sidebar indexes for generated crate docs."""

__version__ = "0.1.0"
