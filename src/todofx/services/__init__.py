"""Service layer — todo operations as effect values, plus the adapter pipeline.

Services may import from domain and effects.
They must never import from commands, output, infrastructure, or config.
"""
