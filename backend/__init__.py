"""
Echo Qualify Backend

Deterministic clinical-text analysis that decides whether documented
evidence supports an echocardiogram, with an optional external reviewer.
"""

__version__ = "1.0.0"
