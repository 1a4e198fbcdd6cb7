"""Shared helpers for maptrack."""
