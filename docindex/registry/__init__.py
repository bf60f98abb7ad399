"""Registry — the merged, queryable implementor index.

The registry provides:
- Delivery: a channel that merges fragments live or buffers them until ready
- Merging: idempotent, order-independent accumulation of implementor records
- Querying: per-trait implementor sequences in first-merge order
- Diagnostics: merge counters and an externally-driven readiness check
"""
