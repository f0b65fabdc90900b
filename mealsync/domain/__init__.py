"""Domain layer.

Entities, change events, ports and the plan editor state machine.
Nothing in this package performs I/O.
"""
