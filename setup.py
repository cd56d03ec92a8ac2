#!/usr/bin/env python
"""
Legacy entry point for the Chemometrics OSC Toolbox.

All package metadata, dependencies and build settings live in pyproject.toml;
this shim only lets tools that still call ``python setup.py`` build the package.
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup()
