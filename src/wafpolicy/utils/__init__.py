"""Utility helpers for wafpolicy."""
