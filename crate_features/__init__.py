"""
crate-features - Cargo feature manager

Toggle the features of a Cargo project's dependencies interactively, or
prune the ones the build and test suite do not need.
"""

__version__ = "0.1.0"
__author__ = "crate-features contributors"
