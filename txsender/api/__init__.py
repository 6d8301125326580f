"""
HTTP clients for third-party services.
"""
