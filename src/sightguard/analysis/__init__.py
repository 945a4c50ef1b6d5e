"""
Pure analysis functions.

- **score_extractor.py**: Reduces a raw Sightengine JSON response to the four
  normalized scores, or to every numeric sub-score per category.
- **verdict_engine.py**: Compares scores against thresholds and emits ordered
  reason tags.
- **value_parser.py**: Parses ``0.7`` / ``70%`` style input and validates the
  [0, 1] range.

Nothing here performs I/O or raises on malformed upstream data.
"""
