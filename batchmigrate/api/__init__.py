"""HTTP API for running and inspecting migrations."""
