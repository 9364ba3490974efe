"""Domain layer — the Todo entity, sort orders, and field rules.

This layer depends only on stdlib, pydantic, and the effect outcome types.
It must never import from services, infrastructure, commands, or config.
"""
