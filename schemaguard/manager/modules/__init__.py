"""
Manager modules discovered by manager.py.
"""
