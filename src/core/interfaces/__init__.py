"""Core interfaces/abstractions.

Structural contracts (Protocol) implemented by concrete adapters, so the Core
depends on capabilities rather than on the terminal or the network.
"""
