"""Core of bento-cli: domain, configuration, logging and services."""
