"""Vault reading, indexing and writing."""
