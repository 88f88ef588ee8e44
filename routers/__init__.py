"""
HTTP routers. Each module owns one resource and is mounted by main.py.
"""
