"""
featuremap: feature maps for annotated TypeScript monorepos.

File: src/featuremap/__init__.py
Last updated: 2026-10-19

Purpose
- Package root. Extracts JSDoc annotations, infers usage relationships from the syntax tree,
  merges both, and assembles a deterministic feature map grouped by business feature.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
