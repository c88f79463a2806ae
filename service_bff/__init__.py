"""
Product BFF service package.
"""
