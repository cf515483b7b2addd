"""
Shared Kernel

Base classes and plumbing shared by the scheduling apps: entity and
value object bases, the time range value object, unit of work and
message bus.
"""
