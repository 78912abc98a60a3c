"""Talent marketplace profile backend."""
