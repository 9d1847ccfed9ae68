#!/usr/bin/env python3
"""
Module initialization - imports all diagnostic modules and provides a function to get all module instances.
"""

from .base import DiagnosticModule, CollectionContext, Check

# Import all modules
from .resources import ResourceUsageModule
from .system import OSConfigurationModule
from .network import NetworkStateModule
from .enterprise import EnterpriseProductModule
from .logs import LogSnapshotModule


def get_all_modules():
    """Return a list of all module instances, in collection order."""
    return [
        ResourceUsageModule(),
        OSConfigurationModule(),
        NetworkStateModule(),
        EnterpriseProductModule(),
        LogSnapshotModule()
    ]
