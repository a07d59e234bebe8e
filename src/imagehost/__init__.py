"""Image host expiry and live-notification service.

Uploaded images may expire at a fixed instant or once their share link is
first opened. Connected viewers are notified over an event stream and a
periodic sweep removes expired records together with their blobs.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
