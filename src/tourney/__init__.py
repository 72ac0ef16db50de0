"""
Tournament scheduling and bracket-progression engine.

The engine is a set of pure functions over immutable snapshots: generators build
match sets, the resolver propagates results through brackets, the standings and
scheduling modules derive read-only views, and the engine module applies commands.
"""
