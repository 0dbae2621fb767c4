"""CLI module for nanorpc."""
