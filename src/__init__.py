"""
Redpanda chart configuration resolver.

Compiles partial Helm values for the Redpanda chart into a fully resolved
broker configuration, trust-store mounts and TLS listener blocks.
"""

__version__ = "0.1.0"
