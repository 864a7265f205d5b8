"""
Pose estimation adapters.

The loop only sees the model-agnostic PoseEstimator interface, so the model
stack can be swapped without touching the loop or the transform.
"""
