"""Command-line layer (Typer + Rich).

Commands parse flags, call the Core and render results; they hold no
business rules of their own.
"""
