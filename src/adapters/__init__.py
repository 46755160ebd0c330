"""Adapters: infrastructure details (HTTP client, profile file).

The Core only knows the domain models; everything that touches the network
or the filesystem outside target files lives here.
"""
