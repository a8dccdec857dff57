"""
Core modules for Usage Analytics.

This package contains the analytics engine and its stages: personalization,
aggregation, session segmentation, forecasting, live metrics and export.
"""
