"""Browser Gate.

Detects the client browser from its user-agent string and client hints,
and turns away browsers that are unknown or older than the configured
minimum versions.
"""

__version__ = "1.0.0"
