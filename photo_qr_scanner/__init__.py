"""
Photo QR Scanner: specimen metadata enrichment package

This package takes photos selected from a personal library, decodes the QR code
label visible in each photo, reverse-geocodes the capture location, looks up the
historic temperature at capture time, and serves the aggregated records as JSON
to a small browser client that prints specimen labels.
"""

__version__ = "1.0.0"
__author__ = "Photo QR Scanner contributors"
