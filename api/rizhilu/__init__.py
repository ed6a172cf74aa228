"""Rizhilu forum API."""
