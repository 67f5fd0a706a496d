"""
Scheduling API

FastAPI routers for the scheduling domain.
"""
