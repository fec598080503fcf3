"""FastAPI application module for RecomEngine.

This module contains the FastAPI application and the endpoints that score
(user, item) pairs with a trained model.
"""
