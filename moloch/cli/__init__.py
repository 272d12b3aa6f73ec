"""Moloch command-line interface."""
