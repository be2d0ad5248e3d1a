from . import cluster

__all__ = ['cluster']
