"""Legacy estimators retained for comparison with the main pipeline.

These modules are not used by gaitcore.pipeline.pipeline. Prefer
run_gait_pipeline for analysis; the service exposes the quick estimator only
through ``mode=quick``.
"""

__all__ = []
