"""Core domain logic package.

This package contains the filename grammar, the decomposer and the pure
table operations. Only the repository facade touches the filesystem,
through the infrastructure loader.
"""
