"""
Shutterfeed Backend — Request and response schemas.
"""
