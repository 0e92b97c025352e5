"""ECET prep HTTP service."""
