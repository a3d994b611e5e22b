"""dep-inventory — third-party dependency report for Node.js applications.

Reads each application's package.json, resolves installed metadata for every
unique dependency, and renders a single HTML report.
"""

__version__ = "0.1.0"
