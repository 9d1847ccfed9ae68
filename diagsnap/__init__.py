#!/usr/bin/env python3
"""
Host Diagnostic Snapshot Tool

Collects network state, resource usage, OS configuration and product
file/log snapshots from a host into a single tar.gz archive for offline
support analysis.
"""

__version__ = "1.0.0"
