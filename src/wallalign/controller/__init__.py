"""
Controllers
===========
Everything that mutates the target node: validation, the solve-then-apply
pipeline, and the per-frame animation that interpolates to a solved pose.
"""
