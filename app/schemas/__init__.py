"""
Pydantic schema package.

Domain-specific schema modules live here, e.g.:
- intake.py (submitted entities)
- responses.py (JSON response bodies)
"""
