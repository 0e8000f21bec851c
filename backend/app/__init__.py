"""Application package for the course records backend.

This package exposes the controller, repository and model modules used
by the FastAPI application that serves help requests and student
organizations. Individual modules contain the concrete implementations
and documentation.
"""
