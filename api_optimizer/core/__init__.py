"""
Core modules for the AI API Optimizer.

This package contains the decision pipeline: response caching, complexity
analysis, model recommendation, pricing and request orchestration.
"""
