"""
This package contains the decoders for data received from a SpaNET
controller.

Sub-packages handle specific data formats:

- ``rf``: the line-oriented ``RF`` status frame, its attribute mapping
  table and the typed ``SpaAttributes`` snapshot built from it.
"""
