"""Project introspection and mutation."""
