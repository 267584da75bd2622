"""
Utility modules for layerconf.
"""
