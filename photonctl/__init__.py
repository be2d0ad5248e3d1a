"""photonctl - cluster lifecycle CLI for Photon Controller."""

__version__ = "0.1.0"
