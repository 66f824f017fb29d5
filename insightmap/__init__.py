"""
insightmap: entity resolution and graph assembly for interview insights.

Turns redundantly-named extraction records into a deduplicated,
analytics-ready visualization graph.
"""

__version__ = "1.0.0"
