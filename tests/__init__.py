"""
Test suite for the FX pool engine

Contains:
- tests/unit/          : Unit tests for individual modules and operation flows
"""
