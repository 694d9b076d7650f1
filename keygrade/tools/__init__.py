"""Command-line and web tools built on the keygrade libraries."""
