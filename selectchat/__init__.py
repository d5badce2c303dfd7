"""Line-based TCP chat server, client and wire protocol with per-channel broadcasting."""

__version__ = "0.1.0"
__all__ = ["protocol", "server", "client", "cli"]