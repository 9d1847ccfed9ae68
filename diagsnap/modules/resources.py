#!/usr/bin/env python3
"""
Resource usage diagnostic module.
"""

from typing import List

from .base import Check, DiagnosticModule

PS_FIELDS = "pid,ppid,user,pcpu,pmem,vsz,rss,etime,args"


class ResourceUsageModule(DiagnosticModule):
    """Module for CPU, memory, process and disk usage snapshots."""

    def __init__(self):
        super().__init__(
            "resources",
            "Resource Usage",
            "resources"
        )
        self.subsections = {check.name: True for check in self.checks()}

    def checks(self) -> List[Check]:
        # prtconf prints the whole device tree; keep only the memory size line
        solaris = self.context is not None and self.context.host.is_solaris
        memory_filter = (lambda line: line.startswith("Memory")) if solaris else None
        return [
            Check("load_average", "resources/uptime.txt", command=[["uptime"]]),
            Check("vmstat", "resources/vmstat.txt", command=[["vmstat", "1", "5"]]),
            Check("iostat", "resources/iostat.txt",
                  linux=[["iostat", "-x", "1", "3"]],
                  solaris=[["iostat", "-xn", "1", "3"]]),
            Check("memory", "resources/memory.txt",
                  linux=[["free", "-m"], ["cat", "/proc/meminfo"]],
                  solaris=[["prtconf"]],
                  filter_func=memory_filter),
            Check("swap", "resources/swap.txt",
                  linux=[["swapon", "--show"], ["cat", "/proc/swaps"]],
                  solaris=[["swap", "-l"]]),
            Check("processes", "resources/ps.txt",
                  command=[["ps", "-eo", PS_FIELDS]]),
            Check("top", "resources/top.txt",
                  linux=[["top", "-b", "-n", "1"]],
                  solaris=[["prstat", "-c", "1", "1"]]),
            Check("disk_usage", "resources/df.txt",
                  linux=[["df", "-h"]],
                  solaris=[["df", "-k"]]),
            Check("inode_usage", "resources/df_inodes.txt",
                  linux=[["df", "-i"]]),
        ]
