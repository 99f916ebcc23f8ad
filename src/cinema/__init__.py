"""
Cinema ticketing service
"""
