"""Core domain layer - entities, interfaces, services, and exceptions."""

from deadline_tracker.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]
