"""
Scheduling Domain

Overlap-free appointment booking, settlement of payments and provider payouts.
"""
