"""
Site Conformance Checker - validates rendered pages, their shared stylesheet
and image assets against a fixed rule catalogue.
"""
__version__ = "1.0.0"
