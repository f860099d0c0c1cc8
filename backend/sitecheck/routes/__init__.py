"""
Route modules for the Site Conformance Checker API.
"""
