"""
Analysis Package.

Report rendering for the posture clustering analysis.

Modules
-------
- visualization: PCA scatter, size-fraction bars, silhouette plots,
  dendrograms, elbow and silhouette sweep curves.
- fuzzy_m_study: Fuzziness exponent sweep with degeneracy diagnostics.
- report_generator: CSV tables and report.md assembly.
"""
