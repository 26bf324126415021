"""ACR — Agent Card Registry.

Validates agent capability descriptors, fingerprints their content and
binds each ``name@version`` to exactly one published card.
"""

__version__ = "0.1.0"
