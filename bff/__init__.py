"""
FastAPI backend-for-frontend for the dealership back office.
"""
