"""Render sinks and markup for maptrack."""
