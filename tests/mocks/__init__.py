"""
Test doubles for layerconf tests.
"""
