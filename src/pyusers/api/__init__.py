"""HTTP API for PyUsers."""
