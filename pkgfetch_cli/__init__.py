"""pkgfetch command line package."""
