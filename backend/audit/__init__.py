"""
Audit app - append-only record of voids, period closes, compliance
resolutions and AI-suggestion decisions.
"""
