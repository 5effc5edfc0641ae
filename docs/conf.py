"""Sphinx configuration for Fire-Risk documentation."""

import os
import sys

# Add project root to sys.path so Sphinx can import firerisk/
sys.path.insert(0, os.path.abspath('..'))

project = 'Fire-Risk'
copyright = '2020, Kevin Fredericks'
author = 'Kevin Fredericks'

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
]

# Napoleon: docstrings use Google style (Args: / Returns: / Raises:)
napoleon_google_docstrings = True
napoleon_numpy_docstrings = False

# Autodoc
autodoc_member_order = 'bysource'
autodoc_typehints = 'description'

# Mock GDAL/HDF-backed imports for CI builds
autodoc_mock_imports = ['pyhdf', 'rasterio']

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'numpy': ('https://numpy.org/doc/stable/', None),
    'pandas': ('https://pandas.pydata.org/docs/', None),
    'matplotlib': ('https://matplotlib.org/stable/', None),
}

html_theme = 'furo'
html_title = 'Shrubland Fire Risk'

exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']
