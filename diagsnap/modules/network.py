#!/usr/bin/env python3
"""
Network related diagnostic modules.
"""

from typing import List

from .base import Check, DiagnosticModule


class NetworkStateModule(DiagnosticModule):
    """Module for interfaces, routes, sockets and name resolution."""

    def __init__(self):
        super().__init__(
            "network",
            "Network State",
            "networking"
        )
        self.subsections = {
            "interfaces": True,
            "routes": True,
            "sockets": True,
            "statistics": True,
            "arp": True,
            "listening": True,
            "name_resolution": True
        }

    def checks(self) -> List[Check]:
        hostname = self.context.hostname if self.context else "localhost"
        return [
            Check("interfaces", "networking/interfaces.txt",
                  linux=[["ip", "addr", "show"], ["ifconfig", "-a"]],
                  solaris=[["ifconfig", "-a"]]),
            Check("routes", "networking/routes.txt",
                  command=[["netstat", "-rn"], ["ip", "route", "show", "table", "all"]]),
            Check("sockets", "networking/netstat_an.txt",
                  command=[["netstat", "-an"], ["ss", "-an"]]),
            Check("statistics", "networking/netstat_s.txt",
                  command=[["netstat", "-s"], ["nstat", "-as"]]),
            Check("arp", "networking/arp.txt",
                  command=[["arp", "-an"], ["ip", "neigh", "show"]]),
            Check("listening", "networking/listening.txt",
                  linux=[["ss", "-lntu"]]),
            Check("name_resolution", "networking/nslookup.txt",
                  command=[["nslookup", hostname], ["getent", "hosts", hostname]]),
        ]
