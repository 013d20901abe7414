"""
bookkeeping_kernel -- domain model, boundary codec and persistence.

The kernel holds everything the calculation engines depend on (value
helpers, the immutable business snapshot, reported conditions, typed
exceptions, structured logging) plus the persistence collaborators that
load and save the business document.  It MUST NOT import from
``bookkeeping_engines`` or ``bookkeeping_config``.
"""
