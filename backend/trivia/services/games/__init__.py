"""Game domain services: question bank, room engine, timers and scoring views.

This package contains the per-room game logic invoked by socket handlers,
keeping transport concerns separated from core game mechanics.
"""
