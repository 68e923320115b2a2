"""
ceph_orchestrator

Control logic of a storage operator, kept small and well separated:
core contains shared data structures, errors and cancellation
admin contains the object gateway admin command interface
control_plane contains platform interfaces and their kubernetes adapters
cleanup contains the drain waiter and per host cleanup dispatch
zone contains the dependency ordered zone reconciler and its status updater
agent contains the controller loop and operator wiring
observability contains structured logging setup
"""
