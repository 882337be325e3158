"""Shared test fixtures package.

Provides moto-backed DynamoDB fixtures and in-memory stores for the pipeline
test suites.
"""
