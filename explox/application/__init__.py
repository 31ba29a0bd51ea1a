"""Application layer: request parsing and pipeline orchestration."""
