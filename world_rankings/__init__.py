"""world_rankings package initializer.

This package contains the data pipeline behind the World Countries
Ranking Shiny application.  Modules include dataset loading, row caching,
filtering and aggregation, table presentation and chart plotting.  See
individual module docstrings for details.
"""
