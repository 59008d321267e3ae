"""scopestore — two-tier, scope-aware persistence for saved connections.

A global store shared by every workspace and a per-workspace store sit
behind one StorageController; ConnectionPersistence decides which store
a connection belongs to and merges it into what is already saved.
"""

__version__ = "0.1.0"
