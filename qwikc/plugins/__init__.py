"""Built-in component plugins."""
