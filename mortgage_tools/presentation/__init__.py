"""
Presentation helpers: chart series, chart handle ownership and theme.
"""
