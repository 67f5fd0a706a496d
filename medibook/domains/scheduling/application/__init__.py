"""
Scheduling Application Layer

Use cases, ports and query objects.
"""
