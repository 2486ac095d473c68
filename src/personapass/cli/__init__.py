"""Command-line interface for the PersonaPass identity cache."""
