# chemosc/version.py
"""
Release number and package metadata, exposed as ``chemosc.__version__``.

Numbers follow MAJOR.MINOR.PATCH; MAJOR changes whenever ``compute_osc`` or
the model classes change incompatibly.
"""

VERSION_MAJOR = 1
VERSION_MINOR = 0
VERSION_PATCH = 0

__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

__title__ = "Chemometrics OSC Toolbox"
__description__ = "Orthogonal signal correction for chemometrics preprocessing"
__author__ = "Chemometrics OSC Toolbox developers"
__license__ = "MIT"
