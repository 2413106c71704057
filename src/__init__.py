"""figmabridge: resilient client-side access to the Figma REST API.

Talks to Figma either directly or through a local tool broker, with
fallback between the two, a response cache and batched thumbnail export.
"""

from figmabridge.version import __version__

__all__ = ["__version__"]
