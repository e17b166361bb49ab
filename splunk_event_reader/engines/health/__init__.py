"""Backend health tracking: the shared status cell and the TTL-cached probe.

Import :mod:`.cell` and :mod:`.cache` directly; the executor depends on the
cell while the cache depends on the executor.
"""
