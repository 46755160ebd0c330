"""Core services: target resolution and the bulk-operation guard."""
