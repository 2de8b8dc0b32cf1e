"""
scoring/ - Survey Scoring & Band-Resolution Engine

Modules:
    utils.py                  - Decimal rounding and ratio helpers
    question_calculator.py    - Per-question raw score and max points
    config_normalizer.py      - Score config repair and fallback ranges
    category_aggregator.py    - Weighted category totals and breakdowns
    band_resolver.py          - Range matching with default-taxonomy fallback
    overall_resolver.py       - Overall score and band
    semantic_scorer.py        - Free-text scoring through a chat-completions service
    trace_builder.py          - Scoring pass entry points
    config_validator.py       - Builder-time configuration report
"""
