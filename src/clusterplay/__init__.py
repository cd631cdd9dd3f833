"""
clusterplay - bootstrap a local pd/tikv/tidb cluster for development.
"""
__version__ = "0.1.0"
