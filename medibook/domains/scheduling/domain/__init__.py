"""
Scheduling Domain Layer

Entities, value objects and pure services for booking and settlement.
"""
