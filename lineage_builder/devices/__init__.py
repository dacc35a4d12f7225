"""Device descriptor module.

This module handles:
- Descriptor schema validation
- Resolving ``--device`` references to descriptor files
- Applying the command-line variant override
- Resolving the set of device repositories to clone
"""

from lineage_builder.devices.schema import DeviceDescriptor, RepositoryEntry

__all__ = ["DeviceDescriptor", "RepositoryEntry"]
