"""
Core comparison engine: data models, scanning, diff annotation and
materialization.
"""
