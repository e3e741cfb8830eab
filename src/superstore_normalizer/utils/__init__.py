"""Shared helpers for parsing, logging, and output."""
