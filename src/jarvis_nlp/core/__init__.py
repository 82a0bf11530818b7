"""
Collaborators outside the deterministic pipeline.

Nothing in here is needed to interpret a command; it only adds optional,
time-boxed commentary on top of an already mapped action.
"""
