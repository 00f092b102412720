"""
img-fetcher: download the images a web page references through a CSS selector.
"""

__version__ = "1.2.0"
