"""
Manager layer: configuration, services and CLI modules.
"""
