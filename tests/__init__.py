"""
Chemometrics OSC Toolbox Test Suite

This package contains tests for the orthogonal signal correction engine, its
numerical utilities, validation layer and configuration system.
"""
