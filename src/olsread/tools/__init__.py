"""Command-line and debugging helpers built on top of :mod:`olsread.dataio`."""
