"""NYC Geo Chat core.

Area-scoped spatial queries against NYC MapPLUTO and synchronisation of
map layers derived from the tool outputs embedded in a chat transcript.
"""

__version__ = "0.1.0"
