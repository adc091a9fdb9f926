"""Tastegraph configuration: environment settings and the category table."""
