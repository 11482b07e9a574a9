"""
archive-dl: download the files of an archive.org item, in parallel and resumably.
"""

__version__ = "1.0.0"
