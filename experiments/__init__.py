"""
Experiments Package.

Configuration and the per-hypothesis pipeline of the posture clustering
report.

Modules
-------
- config: RUN_CONFIG with every analysis constant.
- pipeline: impute -> sample -> standardize -> cluster -> evaluate for one
  grouping hypothesis (subject or gesture).
"""
