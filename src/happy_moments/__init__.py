"""Text analysis and unsupervised learning over happy moment narratives."""

from __future__ import annotations

__version__ = "0.1.0"
