"""HTTP API for the Mermaid <-> Draw.io converter."""
