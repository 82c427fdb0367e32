"""Catalog access: names, URL policy, client, resolver and merge engine."""
