"""Workforce planning backend."""
