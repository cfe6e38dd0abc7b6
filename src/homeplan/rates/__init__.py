"""Benchmark rate payloads: models, normalization, loading and per-loan resolution."""
