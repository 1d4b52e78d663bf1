"""
Fuse Files - Turn many files into a single prompt-ready document.

This package walks files and directories, selects files through extension
filters, custom ignore globs, nested .gitignore rules and a hidden-file
policy, and concatenates their contents (optionally preceded by a directory
tree) as plain text, Markdown or XML.
"""

__version__ = "0.1.0"
__author__ = "Fuse Files Team"
