"""Implementation modules of tessera; import public names from :mod:`tessera`."""
