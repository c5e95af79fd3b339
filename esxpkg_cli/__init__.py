"""Command-line entrypoint package for esxpkg."""
