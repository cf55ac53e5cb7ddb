"""holdsteady -- Hands-free auto-capture of faces and documents.

This package watches a live camera stream, waits until a single subject
is large enough, centered and held still for a sustained interval, and
then captures a padded crop of it for downstream text extraction.
"""

__version__ = "0.1.0"
