"""HTTP API for clipmerge."""
