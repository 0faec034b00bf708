"""Ambient plumbing shared by the package: errors, logging, settings and credentials."""
