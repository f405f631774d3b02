"""
contentpack - content package manager

Serializes subtrees of a hierarchical content repository into packages and
merges them back into a live repository, resolving structural, identifier and
access-control conflicts deterministically.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
