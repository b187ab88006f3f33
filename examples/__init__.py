"""Example applications built on GECK."""
