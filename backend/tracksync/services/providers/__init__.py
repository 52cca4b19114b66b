"""Upstream generation API providers.

Each provider module implements the async generation pattern:
  POST create task → poll status → hand payload to the normalizer
"""
