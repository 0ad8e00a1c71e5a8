"""Seaforge CLI, a single Typer command.

All output uses Rich for formatted terminal display.
"""
