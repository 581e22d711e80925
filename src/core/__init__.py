"""Core application components.

This module provides the foundational components for the access-control API:
- Document store contract and its in-memory and Firestore implementations
- Application settings and configuration
- Store lifecycle and dependency injection helpers
"""
